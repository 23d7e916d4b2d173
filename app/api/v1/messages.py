"""
Message API endpoints: hybrid search and batch fetch.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from app.core.exceptions import NotAuthorizedError
from app.core.logging import get_logger
from app.models.messages import BatchMessagesRequest, HydratedMessage
from app.models.search import MessageSearchRequest, SearchResult
from app.services.messages import get_messages_batch
from app.services.search import search_messages

logger = get_logger(__name__)

router = APIRouter()

NEXT_CURSOR_HEADER = "X-Next-Cursor"


@router.post("/search", response_model=List[SearchResult])
async def search(request: MessageSearchRequest, response: Response) -> List[SearchResult]:
    """
    Search messages across the user's chats.

    **Modes**:
    - text: full-text only
    - semantic: embedding similarity only
    - hybrid (default): both, hits found by both score higher

    Results are ordered newest first. To fetch the next page, send the
    `createdAt` of the last result (also returned in the `X-Next-Cursor`
    header) as `cursor`.

    **Error Handling**:
    - 403 Forbidden: `chatId` is a chat the user is not a member of
    - 500 Internal Server Error: search failed

    **Example**:
        POST /api/messages/search
        {"userId": "u1", "query": "dinner plans", "mode": "hybrid", "limit": 30}
    """
    try:
        page = await search_messages(request)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except Exception as e:
        logger.error(
            f"Search failed for user {request.user_id} (mode={request.mode}, query={request.query!r}): {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search failed",
        )

    if page.next_cursor:
        response.headers[NEXT_CURSOR_HEADER] = page.next_cursor
    return page.results


@router.post("/batch", response_model=List[HydratedMessage])
async def batch(request: BatchMessagesRequest) -> List[HydratedMessage]:
    """
    Fetch up to 100 messages by id (gap recovery and batch fetching).

    **Error Handling**:
    - 400 Bad Request: no ids, or more than 100
    - 500 Internal Server Error: fetch failed
    """
    try:
        return await get_messages_batch(request.message_ids)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Batch fetch failed for {len(request.message_ids)} ids: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to batch fetch messages",
        )
