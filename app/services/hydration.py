"""
Hydration and authorization filter for search results.

Expands the selected candidate ids into full message records, decrypts
them, drops anything that must not be shown, and attaches the match
metadata. Inclusion by retrieval does not guarantee presence here.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client

from app.core.exceptions import HydrationError
from app.core.logging import get_logger
from app.db.messages import fetch_messages_by_ids
from app.models.messages import ChatSummary, HydratedMessage, LinkPreview
from app.models.search import SearchResult
from app.services.fusion import Candidate
from app.services.message_encryption import decrypt_messages

logger = get_logger(__name__)


def _link_preview(row: Dict[str, Any]) -> Optional[LinkPreview]:
    if not row.get("linkPreviewUrl"):
        return None
    return LinkPreview(
        url=row["linkPreviewUrl"],
        title=row.get("linkPreviewTitle"),
        description=row.get("linkPreviewDescription"),
        image=row.get("linkPreviewImage"),
        site_name=row.get("linkPreviewSiteName"),
        favicon=row.get("linkPreviewFavicon"),
    )


def build_hydrated_message(row: Dict[str, Any]) -> HydratedMessage:
    """Convert a joined, decrypted message row into the client shape."""
    return HydratedMessage.model_validate({**row, "linkPreview": _link_preview(row)})


async def load_messages(db: Client, message_ids: List[str]) -> List[Dict[str, Any]]:
    """
    Fetch and decrypt joined message rows.

    Raises:
        HydrationError: The fetch or decryption failed
    """
    try:
        rows = await fetch_messages_by_ids(db, message_ids)
        return await decrypt_messages(db, rows)
    except Exception as e:
        raise HydrationError(
            f"Failed to load messages: {type(e).__name__}",
            details={"message_count": len(message_ids)},
        ) from e


async def hydrate_results(
    selected: List[Candidate], chat_ids: List[str], db: Client
) -> List[SearchResult]:
    """
    Build search results for exactly the selected candidates.

    Messages outside the searched chats or without a resolvable sender are
    dropped. The candidate order is preserved.

    Args:
        selected: The page chosen by the pagination selector
        chat_ids: Chats the user is allowed to read
        db: Supabase client

    Returns:
        Hydrated search results, in the order of `selected`

    Raises:
        HydrationError: Messages could not be fetched, decrypted or parsed
    """
    if not selected:
        return []

    rows = await load_messages(db, [candidate.id for candidate in selected])
    rows_by_id = {row["id"]: row for row in rows}
    allowed_chats = set(chat_ids)

    results: List[SearchResult] = []
    for candidate in selected:
        row = rows_by_id.get(candidate.id)
        if row is None:
            logger.debug(f"Message {candidate.id} disappeared before hydration")
            continue
        if row.get("chatId") not in allowed_chats:
            logger.warning(f"Dropping message {candidate.id}: chat outside search scope")
            continue
        if not row.get("user"):
            logger.debug(f"Dropping message {candidate.id}: no resolvable sender")
            continue

        try:
            message = build_hydrated_message(row)
            chat = ChatSummary.model_validate(row.get("chat") or {"id": row["chatId"]})
        except ValidationError as e:
            raise HydrationError(
                f"Malformed message record {candidate.id}",
                details={"errors": e.error_count()},
            ) from e

        results.append(
            SearchResult(
                message=message,
                chat=chat,
                similarity=candidate.similarity,
                matched_field=candidate.matched_field,
            )
        )

    return results
