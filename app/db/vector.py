"""
Message retrieval RPCs: pgvector similarity and PostgreSQL full-text search.

Both RPCs take the same filter arguments so the two retrieval branches
always search the same window.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MessageFilters:
    """Scope shared by both retrieval RPCs."""

    chat_ids: List[str]
    from_user_id: Optional[str] = None
    message_types: Optional[List[str]] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def to_rpc_params(self) -> Dict[str, Any]:
        return {
            "filter_user_id": self.from_user_id,
            "filter_chat_ids": list(self.chat_ids),
            "filter_message_types": list(self.message_types) if self.message_types else None,
            "filter_date_from": self.date_from.isoformat() if self.date_from else None,
            "filter_date_to": self.date_to.isoformat() if self.date_to else None,
        }


async def match_messages(
    db: Client,
    query_embedding: List[float],
    filters: MessageFilters,
    match_threshold: float,
    match_count: int,
) -> List[Dict[str, Any]]:
    """
    Vector similarity search over message embeddings.

    Args:
        db: Supabase client instance
        query_embedding: Query vector embedding
        filters: Chat/sender/type/date scope
        match_threshold: Minimum cosine similarity (0-1)
        match_count: Maximum rows to return

    Returns:
        Rows with id, content, similarity and createdat
    """
    params = {
        "query_embedding": query_embedding,
        "match_threshold": match_threshold,
        "match_count": match_count,
        **filters.to_rpc_params(),
    }
    logger.debug(
        f"match_messages: threshold={match_threshold}, count={match_count}, "
        f"chats={len(filters.chat_ids)}, embedding_len={len(query_embedding)}"
    )

    # Blocking client; run off the event loop so branches overlap
    response = await asyncio.to_thread(db.rpc("match_messages", params).execute)
    return response.data or []


async def search_messages_text(
    db: Client,
    search_query: str,
    filters: MessageFilters,
    match_count: int,
) -> List[Dict[str, Any]]:
    """
    Ranked full-text search over message content.

    The RPC combines websearch, prefix and substring matching; the raw query
    text is passed through unmodified.

    Returns:
        Rows with id, content, rank and createdat
    """
    params = {
        "search_query": search_query,
        "match_count": match_count,
        **filters.to_rpc_params(),
    }
    logger.debug(f"search_messages_text: count={match_count}, chats={len(filters.chat_ids)}")

    response = await asyncio.to_thread(db.rpc("search_messages_text", params).execute)
    return response.data or []
