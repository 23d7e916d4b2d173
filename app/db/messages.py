"""
Message, membership and profile reads against Supabase.

Thin wrappers over PostgREST queries so services never build queries
themselves. All functions take the client explicitly. supabase-py's
`Client` is blocking, so every `execute()` runs in a worker thread.
"""

import asyncio
from typing import Any, Dict, List, Optional

from supabase import Client

from app.core.logging import get_logger

logger = get_logger(__name__)

# Joined select used wherever messages are rendered for the client
HYDRATED_MESSAGE_SELECT = """
    *,
    user:userId (*),
    chat:chatId (id, name, image),
    aiFriend:aiFriendId (*),
    replyTo:replyToId (
        *,
        user:userId (*)
    ),
    reactions:reaction (
        *,
        user:userId (*)
    ),
    mentions:mention (
        *,
        mentionedUser:mentionedUserId (*)
    )
"""


def _ilike_pattern(text: str) -> str:
    """Build an ILIKE pattern, dropping characters PostgREST treats as syntax."""
    cleaned = "".join(c for c in text if c not in ",()%*\\")
    return f"%{cleaned.strip()}%"


async def get_chat_membership(db: Client, user_id: str, chat_id: str) -> Optional[Dict[str, Any]]:
    """
    Look up a single chat membership.

    Returns:
        The membership row, or None if the user is not a member
    """
    query = (
        db.table("chat_member")
        .select("id")
        .eq("chatId", chat_id)
        .eq("userId", user_id)
        .limit(1)
    )
    response = await asyncio.to_thread(query.execute)
    return response.data[0] if response.data else None


async def list_user_chat_ids(db: Client, user_id: str) -> List[str]:
    """Return ids of every chat the user belongs to."""
    query = db.table("chat_member").select("chatId").eq("userId", user_id)
    response = await asyncio.to_thread(query.execute)
    return [row["chatId"] for row in response.data or []]


async def fetch_messages_by_ids(db: Client, message_ids: List[str]) -> List[Dict[str, Any]]:
    """
    Fetch fully joined message rows for the given ids.

    Row order is not guaranteed; callers re-order by id.
    """
    if not message_ids:
        return []

    query = db.table("message").select(HYDRATED_MESSAGE_SELECT).in_("id", message_ids)
    response = await asyncio.to_thread(query.execute)
    return response.data or []


async def decrypt_message_content(db: Client, encrypted_text: str) -> Optional[str]:
    """Decrypt message content with the database-held key."""
    request = db.rpc("decrypt_message_content", {"encrypted_text": encrypted_text})
    response = await asyncio.to_thread(request.execute)
    return response.data
async def search_chats_by_name(
    db: Client, user_id: str, query: str, limit: int = 5
) -> List[Dict[str, Any]]:
    """
    Find chats the user belongs to whose name contains the query.

    Rows carry `members` as a PostgREST aggregate: [{"count": n}].
    """
    request = (
        db.table("chat")
        .select("*, chat_member!inner(userId), members:chat_member(count)")
        .eq("chat_member.userId", user_id)
        .ilike("name", _ilike_pattern(query))
        .limit(limit)
    )
    response = await asyncio.to_thread(request.execute)
    return response.data or []


async def search_users(
    db: Client, user_id: str, query: str, limit: int = 5
) -> List[Dict[str, Any]]:
    """Find other users whose name or phone contains the query."""
    pattern = _ilike_pattern(query)
    request = (
        db.table("user")
        .select("*")
        .neq("id", user_id)
        .or_(f"name.ilike.{pattern},phone.ilike.{pattern}")
        .limit(limit)
    )
    response = await asyncio.to_thread(request.execute)
    return response.data or []


async def fetch_messages_missing_embeddings(
    db: Client, limit: int, after_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Fetch the next batch of messages with content but no embedding.

    Batches are ordered by id; pass the last id of the previous batch as
    `after_id` to continue past rows that were skipped or failed.
    """
    request = (
        db.table("message")
        .select("id, content, is_encrypted")
        .is_("embedding", "null")
        .not_.is_("content", "null")
    )
    if after_id is not None:
        request = request.gt("id", after_id)

    response = await asyncio.to_thread(request.order("id").limit(limit).execute)
    return response.data or []


async def update_message_embedding(db: Client, message_id: str, embedding: List[float]) -> None:
    """Store a message embedding."""
    request = db.table("message").update({"embedding": embedding}).eq("id", message_id)
    await asyncio.to_thread(request.execute)
