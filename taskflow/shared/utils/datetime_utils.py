"""Datetime utilities for timezone-aware elapsed-time arithmetic."""

from datetime import datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime object is timezone-aware and in UTC.

    If the datetime is naive (no tzinfo), it's assumed to be UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: A datetime object (naive or aware)

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    """Return the signed number of hours from ``start`` to ``end``.

    Naive and aware datetimes may be mixed; both are normalised to UTC
    first so the subtraction never raises.
    """
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


__all__ = [
    "ensure_utc",
    "hours_between",
]
