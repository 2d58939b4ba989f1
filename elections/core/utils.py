"""General utility functions."""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_within_window(opens: datetime, closes: datetime, now: Optional[datetime] = None) -> bool:
    """
    Check whether ``now`` falls in the half-open voting window ``[opens, closes)``.

    Args:
        opens: Window start (timezone-aware or naive, assumed UTC if naive)
        closes: Window end (timezone-aware or naive, assumed UTC if naive)
        now: Reference time, defaults to the current time

    Returns:
        bool: True if the window is currently open
    """
    now = to_utc(now) if now is not None else utcnow()
    return to_utc(opens) <= now < to_utc(closes)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # SQLite drops tzinfo; stored values are always UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
