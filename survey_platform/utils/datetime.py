"""Naive-UTC time helpers; all DateTime columns store UTC without tzinfo."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days elapsed from earlier to later, truncated toward zero."""
    delta = later - earlier
    days = abs(delta).days
    return days if delta.total_seconds() >= 0 else -days
