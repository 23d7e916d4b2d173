"""
Unified search for the search screen: chats, people and messages at once.

Message hits come from the lexical branch only and go through the same
hydration and authorization filter as message search.
"""

from typing import Any, Dict, List, Optional

from supabase import Client

from app.core.config import settings
from app.core.logging import get_logger
from app.db.messages import search_chats_by_name, search_users
from app.db.supabase import get_supabase_client
from app.db.vector import MessageFilters
from app.models.messages import UserSummary
from app.models.search import ChatSearchHit, GlobalSearchRequest, GlobalSearchResponse
from app.services.fusion import fuse_candidates, select_page
from app.services.hydration import hydrate_results
from app.services.retrieval import run_lexical_branch
from app.services.scope import resolve_chat_scope

logger = get_logger(__name__)


def _chat_hit(row: Dict[str, Any], user_id: str) -> ChatSearchHit:
    members = row.get("members") or []
    member_count = members[0].get("count", 0) if members else 0
    return ChatSearchHit(
        id=row["id"],
        name=row.get("name"),
        image=row.get("image"),
        bio=row.get("bio"),
        creator_id=row.get("creatorId"),
        member_count=member_count,
        is_creator=row.get("creatorId") == user_id,
    )


async def global_search(
    request: GlobalSearchRequest, db: Optional[Client] = None
) -> GlobalSearchResponse:
    """
    Search chats, users and messages for one query.

    When `chat_id` is set the search runs inside that chat only: chats and
    users are skipped and membership is required.

    Raises:
        NotAuthorizedError: `chat_id` is a chat the user is not in
    """
    query = request.query.strip()
    if not query:
        return GlobalSearchResponse()

    if db is None:
        db = get_supabase_client()

    chat_ids = await resolve_chat_scope(request.user_id, request.chat_id, db=db)

    chats: List[ChatSearchHit] = []
    users: List[UserSummary] = []
    if not request.chat_id:
        preview_limit = settings.global_search_preview_limit
        chat_rows = await search_chats_by_name(db, request.user_id, query, limit=preview_limit)
        chats = [_chat_hit(row, request.user_id) for row in chat_rows]

        user_rows = await search_users(db, request.user_id, query, limit=preview_limit)
        users = [UserSummary.model_validate(row) for row in user_rows]

    messages = []
    if chat_ids:
        lexical = await run_lexical_branch(
            db,
            query,
            MessageFilters(chat_ids=chat_ids),
            match_count=request.limit,
            log_context={"user_id": request.user_id, "search_mode": "text", "query": query},
        )
        page = select_page(fuse_candidates(lexical.usable_candidates()).values(), request.limit)
        messages = await hydrate_results(page, chat_ids, db)

    logger.info(
        f"Global search: {len(chats)} chats, {len(users)} users, {len(messages)} messages",
        extra={"user_id": request.user_id},
    )
    return GlobalSearchResponse(chats=chats, users=users, messages=messages)
