"""
Time utilities for ZERO-BOT.

Freshness rules for cached quotes and swap deadlines.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get current UTC datetime as ISO string."""
    return now_utc().isoformat()


def now_ms() -> int:
    """Get current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def deadline_from_now(seconds: int, current_time: Optional[float] = None) -> int:
    """Unix timestamp `seconds` from now, as used by router deadlines."""
    current = current_time if current_time is not None else time.time()
    return int(current) + seconds


def is_fresh(
    timestamp_ms: int,
    max_age_ms: int,
    current_ms: Optional[int] = None,
) -> bool:
    """
    Check if a millisecond timestamp is younger than max_age_ms.

    Args:
        timestamp_ms: Timestamp to check
        max_age_ms: Maximum allowed age (exclusive)
        current_ms: Current time (defaults to now)

    Returns:
        True if timestamp is fresh
    """
    current = current_ms if current_ms is not None else now_ms()
    return (current - timestamp_ms) < max_age_ms
