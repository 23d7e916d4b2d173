"""
Cursor policy for recency-ordered search pagination.

A cursor is the createdAt of the last item on the previous page. The next
page is everything strictly older, so the cursor is turned into an
inclusive upper bound one millisecond earlier.
"""

from datetime import datetime, timedelta
from typing import Optional

from app.core.logging import get_logger
from app.utils.timestamps import ensure_utc, format_timestamp, parse_timestamp

logger = get_logger(__name__)

# Cursors are emitted with millisecond precision
CURSOR_STEP = timedelta(milliseconds=1)


def parse_cursor(cursor: Optional[str]) -> Optional[datetime]:
    """
    Parse a cursor string.

    Malformed cursors are treated as absent rather than rejected, so a stale
    or mangled client token restarts from the newest page instead of failing.
    """
    if cursor is None:
        return None

    parsed = parse_timestamp(cursor)
    if parsed is None:
        logger.debug(f"Ignoring malformed search cursor: {cursor!r}")
    return parsed


def encode_cursor(created_at: datetime) -> str:
    """Cursor for the page that ends with an item created at `created_at`."""
    return format_timestamp(created_at)


def resolve_upper_bound(
    date_to: Optional[datetime], cursor: Optional[str]
) -> Optional[datetime]:
    """
    Combine an explicit dateTo filter with a pagination cursor.

    Returns:
        The more restrictive of the two bounds, whichever one is present,
        or None when the window is unbounded above
    """
    explicit = ensure_utc(date_to) if date_to is not None else None

    cursor_at = parse_cursor(cursor)
    if cursor_at is None:
        return explicit

    cursor_bound = cursor_at - CURSOR_STEP
    if explicit is None:
        return cursor_bound
    return min(explicit, cursor_bound)
