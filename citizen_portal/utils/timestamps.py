"""Timestamp helpers for portal API values."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone


def to_utc(value: datetime | str | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime, or None when it is not a timestamp.

    Strings are ISO-8601 as the portal sends them (``2025-03-04T10:00:00.000Z``).
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def months_before(reference: datetime, months: int) -> datetime:
    """Return ``reference`` shifted back by calendar months, clamping the day."""
    month_index = reference.month - 1 - months
    year = reference.year + month_index // 12
    month = month_index % 12 + 1
    day = reference.day
    while day > 28:
        try:
            return reference.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1
    return reference.replace(year=year, month=month, day=day)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ago(seconds: float, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(seconds=seconds)
