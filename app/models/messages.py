"""
Hydrated message models returned to the mobile client.

These mirror the rows produced by the joined `message` select in
`app.db.messages.HYDRATED_MESSAGE_SELECT`. Validation accepts the
store's camelCase column names directly.
"""

import json
from typing import Any, List, Optional

from pydantic import Field, field_validator

from app.models.base import BaseRequest, BaseResponse, Timestamp


class UserSummary(BaseResponse):
    """Public profile of a message sender, reactor or mentioned user."""

    id: str
    name: Optional[str] = None
    phone: str = ""
    bio: Optional[str] = None
    image: Optional[str] = None
    has_completed_onboarding: bool = False
    created_at: Timestamp
    updated_at: Timestamp

    @field_validator("phone", mode="before")
    @classmethod
    def default_phone(cls, v: Any) -> str:
        return v or ""

    @field_validator("has_completed_onboarding", mode="before")
    @classmethod
    def default_onboarding(cls, v: Any) -> bool:
        return bool(v)


class AIFriendSummary(BaseResponse):
    """AI participant attached to a chat."""

    id: str
    name: str
    color: Optional[str] = None
    personality: Optional[str] = None
    tone: Optional[str] = None
    engagement_mode: Optional[str] = None
    engagement_percent: Optional[int] = None
    chat_id: str
    sort_order: int = 0
    created_at: Timestamp
    updated_at: Timestamp


class ChatSummary(BaseResponse):
    """Minimal chat card shown next to a search hit."""

    id: str
    name: Optional[str] = None
    image: Optional[str] = None


class LinkPreview(BaseResponse):
    """Unfurled link attached to a message."""

    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None
    favicon: Optional[str] = None


class ReplyToMessage(BaseResponse):
    """The message a hydrated message replies to."""

    id: str
    content: Optional[str] = None
    message_type: str
    image_url: Optional[str] = None
    user_id: Optional[str] = None
    chat_id: str
    created_at: Timestamp
    user: Optional[UserSummary] = None


class Reaction(BaseResponse):
    """Emoji reaction on a message."""

    id: str
    emoji: str
    user_id: str
    message_id: str
    chat_id: str
    created_at: Timestamp
    user: Optional[UserSummary] = None


class Mention(BaseResponse):
    """@mention of a user inside a message."""

    id: str
    message_id: str
    mentioned_user_id: str
    mentioned_by_user_id: str
    created_at: Timestamp
    mentioned_user: Optional[UserSummary] = None


class HydratedMessage(BaseResponse):
    """A fully hydrated, decrypted message."""

    id: str
    content: Optional[str] = None
    message_type: str
    image_url: Optional[str] = None
    image_description: Optional[str] = None
    voice_url: Optional[str] = None
    voice_duration: Optional[int] = None
    voice_transcription: Optional[str] = None
    event_id: Optional[str] = None
    poll_id: Optional[str] = None
    user_id: Optional[str] = None
    chat_id: str
    reply_to_id: Optional[str] = None
    vibe_type: Optional[str] = None
    metadata: Optional[Any] = None
    ai_friend_id: Optional[str] = None
    edited_at: Optional[Timestamp] = None
    is_unsent: bool = False
    edit_history: Optional[Any] = None
    created_at: Timestamp
    link_preview: Optional[LinkPreview] = None
    user: Optional[UserSummary] = None
    ai_friend: Optional[AIFriendSummary] = None
    reply_to: Optional[ReplyToMessage] = None
    reactions: List[Reaction] = Field(default_factory=list)
    mentions: List[Mention] = Field(default_factory=list)

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v: Any) -> Any:
        """Metadata is sometimes stored as a JSON string."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except ValueError:
                return None
        return v

    @field_validator("is_unsent", mode="before")
    @classmethod
    def default_unsent(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("reactions", "mentions", mode="before")
    @classmethod
    def default_empty_list(cls, v: Any) -> Any:
        return v or []


class BatchMessagesRequest(BaseRequest):
    """Request for fetching several messages by id."""

    message_ids: List[str] = Field(
        default_factory=list, description="Message IDs to fetch (max 100)"
    )
