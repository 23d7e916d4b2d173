"""
Chat scope resolution: which chats a user may search.
"""

from typing import List, Optional

from supabase import Client

from app.core.exceptions import NotAuthorizedError
from app.core.logging import get_logger
from app.db.messages import get_chat_membership, list_user_chat_ids
from app.db.supabase import get_supabase_client

logger = get_logger(__name__)


async def resolve_chat_scope(
    user_id: str, chat_id: Optional[str] = None, db: Optional[Client] = None
) -> List[str]:
    """
    Resolve the chat ids a search may cover.

    Args:
        user_id: Requesting user
        chat_id: Optional explicit chat to search inside
        db: Supabase client (defaults to the shared client)

    Returns:
        [chat_id] for an explicit chat, otherwise every chat the user belongs
        to (empty if none)

    Raises:
        NotAuthorizedError: The user is not a member of the explicit chat
    """
    if db is None:
        db = get_supabase_client()

    if chat_id:
        membership = await get_chat_membership(db, user_id, chat_id)
        if membership is None:
            raise NotAuthorizedError(user_id=user_id, chat_id=chat_id)
        return [chat_id]

    chat_ids = await list_user_chat_ids(db, user_id)
    logger.debug(f"User {user_id} belongs to {len(chat_ids)} chats")
    return chat_ids
