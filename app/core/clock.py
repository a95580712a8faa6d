"""Time helpers. All persisted timestamps are naive UTC."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
