"""
Hybrid message search combining vector similarity and full-text matching.

Pipeline:
1. Resolve the chats the user may search
2. Turn dateTo + cursor into one upper bound
3. Run the semantic and lexical branches concurrently
4. Fuse candidates by message id (corroborated hits score higher)
5. Order by recency and cut to one page
6. Hydrate, decrypt and authorize only the selected page
"""

from datetime import datetime
from typing import Optional

from supabase import Client

from app.core.logging import get_logger
from app.db.supabase import get_supabase_client
from app.db.vector import MessageFilters
from app.models.search import MessageSearchRequest, SearchPage
from app.services.cursor import encode_cursor, resolve_upper_bound
from app.services.fusion import fuse_candidates, select_page
from app.services.hydration import hydrate_results
from app.services.retrieval import dispatch_retrieval
from app.services.scope import resolve_chat_scope
from app.utils.timestamps import ensure_utc

logger = get_logger(__name__)


async def search_messages(request: MessageSearchRequest, db: Optional[Client] = None) -> SearchPage:
    """
    Search messages visible to the requesting user.

    Args:
        request: Search request with query, mode, filters and cursor
        db: Supabase client (defaults to the shared client)

    Returns:
        SearchPage with results ordered newest first and the next cursor

    Raises:
        NotAuthorizedError: An explicit chat was requested the user is not in
        HydrationError: The selected messages could not be loaded
    """
    query = request.query.strip()
    if not query:
        return SearchPage()

    start_time = datetime.now()
    log_context = {"user_id": request.user_id, "search_mode": request.mode, "query": query}

    if db is None:
        db = get_supabase_client()

    chat_ids = await resolve_chat_scope(request.user_id, request.chat_id, db=db)
    if not chat_ids:
        logger.info("User has no chats, skipping search", extra=log_context)
        return SearchPage()

    filters = MessageFilters(
        chat_ids=chat_ids,
        from_user_id=request.from_user_id,
        message_types=request.message_types,
        date_from=ensure_utc(request.date_from) if request.date_from else None,
        date_to=resolve_upper_bound(request.date_to, request.cursor),
    )

    branch_results = await dispatch_retrieval(
        db, query, request.mode, filters, request.limit, request.user_id
    )
    fused = fuse_candidates(*(result.usable_candidates() for result in branch_results))
    page = select_page(fused.values(), request.limit)

    results = await hydrate_results(page, chat_ids, db)
    next_cursor = encode_cursor(page[-1].created_at) if page else None

    execution_time = (datetime.now() - start_time).total_seconds() * 1000
    degraded = [result.branch for result in branch_results if not result.ok]
    logger.info(
        f"Search complete: {len(fused)} candidates, {len(page)} selected, "
        f"{len(results)} returned in {execution_time:.2f}ms"
        + (f" (degraded: {', '.join(degraded)})" if degraded else ""),
        extra=log_context,
    )

    return SearchPage(results=results, next_cursor=next_cursor)
