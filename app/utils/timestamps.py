"""
Timestamp helpers shared by models, cursors and retrieval.

The message store keeps `timestamp without time zone` columns in UTC, and
clients expect JavaScript-style ISO strings (millisecond precision, `Z`).
"""

from datetime import datetime, timezone
from typing import Any, Optional


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 value into an aware UTC datetime.

    Returns None for missing or unparseable input instead of raising.

    Example:
        >>> parse_timestamp("2025-11-03T17:25:50.123Z")
        datetime.datetime(2025, 11, 3, 17, 25, 50, 123000, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def format_timestamp(value: datetime) -> str:
    """Render a datetime the way JavaScript's toISOString() does."""
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
