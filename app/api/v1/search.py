"""
Unified search endpoint for the search screen.
"""

from fastapi import APIRouter, HTTPException, status

from app.core.exceptions import NotAuthorizedError
from app.core.logging import get_logger
from app.models.search import GlobalSearchRequest, GlobalSearchResponse
from app.services.global_search import global_search

logger = get_logger(__name__)

router = APIRouter()


@router.post("/global", response_model=GlobalSearchResponse)
async def search_global(request: GlobalSearchRequest) -> GlobalSearchResponse:
    """
    Search chats, people and messages in one call.

    With `chatId` set, only messages inside that chat are searched.
    """
    try:
        return await global_search(request)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except Exception as e:
        logger.error(
            f"Global search failed for user {request.user_id} (query={request.query!r}): {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search failed",
        )
