"""
Domain exceptions for the chat backend.

Routers translate these into HTTP responses; `app.core.error_handler`
registers fallback handlers for anything that escapes a router.
"""

from typing import Literal


class ChatAppError(Exception):
    """Base exception for chat backend errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotAuthorizedError(ChatAppError):
    """The user is not a member of the chat they tried to read."""

    def __init__(self, user_id: str, chat_id: str) -> None:
        super().__init__(
            "Not a member of this chat",
            details={"user_id": user_id, "chat_id": chat_id},
        )
        self.user_id = user_id
        self.chat_id = chat_id


class RetrievalDegradedError(ChatAppError):
    """
    A single retrieval branch failed.

    Never raised to callers: the dispatcher records it on the branch result
    and the branch contributes no candidates.
    """

    def __init__(self, branch: Literal["semantic", "lexical"], cause: Exception) -> None:
        super().__init__(
            f"{branch} retrieval failed: {type(cause).__name__}",
            details={"branch": branch},
        )
        self.branch = branch
        self.cause = cause


class HydrationError(ChatAppError):
    """Fetching or decrypting the selected messages failed."""
