"""
Search models for hybrid (semantic + full-text) message search.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from app.core.config import settings
from app.models.base import BaseRequest, BaseResponse
from app.models.messages import ChatSummary, HydratedMessage, UserSummary

SearchMode = Literal["text", "semantic", "hybrid"]
MatchedField = Literal["content", "transcription", "description"]


class MessageSearchRequest(BaseRequest):
    """Request for searching messages across the user's chats."""

    user_id: str = Field(..., description="Requesting user ID")
    query: str = Field("", description="Free-text query; blank returns no results", max_length=500)
    mode: SearchMode = Field("hybrid", description="text, semantic or hybrid retrieval")
    chat_id: Optional[str] = Field(None, description="Restrict the search to one chat")
    from_user_id: Optional[str] = Field(None, description="Only messages sent by this user")
    message_types: Optional[List[str]] = Field(None, description="Allowed message types")
    date_from: Optional[datetime] = Field(None, description="Only messages created at or after")
    date_to: Optional[datetime] = Field(None, description="Only messages created at or before")
    limit: int = Field(
        settings.search_default_limit,
        description="Page size",
        ge=1,
        le=settings.search_max_limit,
    )
    cursor: Optional[str] = Field(
        None, description="createdAt of the last item of the previous page"
    )


class SearchResult(BaseResponse):
    """Single message search hit."""

    message: HydratedMessage
    chat: ChatSummary
    similarity: Optional[float] = Field(None, description="Semantic similarity if matched semantically")
    matched_field: Optional[MatchedField] = None


class SearchPage(BaseResponse):
    """One page of search results plus the cursor for the next page."""

    results: List[SearchResult] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, description="Pass as `cursor` to continue")


class GlobalSearchRequest(BaseRequest):
    """Request for the unified search screen (chats, people, messages)."""

    user_id: str = Field(..., description="Requesting user ID")
    query: str = Field("", description="Free-text query", max_length=500)
    limit: int = Field(
        settings.global_search_default_limit,
        description="Maximum message hits",
        ge=1,
        le=settings.search_max_limit,
    )
    chat_id: Optional[str] = Field(None, description="Search inside a single chat")


class ChatSearchHit(BaseResponse):
    """A chat whose name matched the query."""

    id: str
    name: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    creator_id: Optional[str] = None
    member_count: int = 0
    is_creator: bool = False
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None


class GlobalSearchResponse(BaseResponse):
    """Unified search response."""

    chats: List[ChatSearchHit] = Field(default_factory=list)
    users: List[UserSummary] = Field(default_factory=list)
    messages: List[SearchResult] = Field(default_factory=list)
