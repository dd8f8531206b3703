"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Engine modules call this instead of datetime.now() so tests can patch
    the clock in one place per module.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite returns timezone-naive datetimes even for timezone-aware columns.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, truncated toward zero."""
    delta = ensure_timezone_aware(end) - ensure_timezone_aware(start)
    return int(delta.total_seconds())
