from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize to naive UTC; SQLite hands back naive values, Postgres aware ones."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Elapsed whole minutes from ``start`` to ``end``, never negative."""
    elapsed = to_naive_utc(end) - to_naive_utc(start)
    return max(0, int(elapsed.total_seconds() // 60))


def is_before(value: Optional[datetime], other: datetime) -> bool:
    return value is not None and to_naive_utc(value) < to_naive_utc(other)
