"""
Domain time utilities (pure).

Centralized timestamp validation plus the calendar arithmetic used by
report windows.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the requirement that persisted timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_key(value: datetime) -> str:
    """Calendar day (UTC) of a timestamp as YYYY-MM-DD."""

    return ensure_utc(value).date().isoformat()


def subtract_months(value: datetime, months: int) -> datetime:
    """
    Move a timestamp back by whole calendar months.

    The day of month is clamped to the length of the target month, so
    March 31 minus one month is February 28 (or 29).
    """

    if months < 0:
        raise ValueError("months must be >= 0")

    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def end_of_day(value: date) -> datetime:
    return start_of_day(value) + timedelta(days=1) - timedelta(microseconds=1)
