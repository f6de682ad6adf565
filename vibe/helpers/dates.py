"""
Datetime helpers.

All timestamps are stored as UTC. Some drivers (SQLite) hand back naive
values, so comparisons go through ``ensure_aware``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the UTC day containing ``moment``."""
    start = ensure_aware(moment).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)
