"""
Display helpers for saved attempts shown on the resume prompt.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def format_time_remaining(seconds: int) -> str:
    """
    Compact clock for the time left on an attempt.

    Example:
        >>> format_time_remaining(3900)
        '1h 5m'
        >>> format_time_remaining(250)
        '4m 10s'
        >>> format_time_remaining(9)
        '9s'
    """
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_last_saved(saved_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Relative description of when an attempt was last saved.

    Anything a week old or more falls back to the ISO date.
    """
    now = now or datetime.now(timezone.utc)
    elapsed = (now - saved_at).total_seconds()
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return saved_at.date().isoformat()
