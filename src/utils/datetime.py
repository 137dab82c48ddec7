# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for CampusBoard.

All timestamps are stored in UTC and all Python datetimes are timezone-aware.
Some drivers (SQLite) hand back naive datetimes; ensure_utc() normalizes them
before any comparison.

Usage:
------
    from src.utils.datetime import utc_now

    # For current time
    now = utc_now()

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    # Already aware - convert to UTC
    return dt.astimezone(timezone.utc)


def utc_today_start() -> datetime:
    """Get the start of today in UTC (midnight).

    Returns:
        Timezone-aware datetime for today at 00:00:00 UTC.
    """
    now = utc_now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def utc_day_bounds(day: date | None = None) -> tuple[datetime, datetime]:
    """Get the half-open [start, next day start) interval of a UTC day.

    Args:
        day: Calendar day. Defaults to today in UTC.

    Returns:
        Tuple of (start, end) timezone-aware datetimes.
    """
    if day is None:
        start = utc_today_start()
    else:
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def days_from_now(days: int) -> datetime:
    """Get a datetime N days from now.

    Args:
        days: Number of days to add.

    Returns:
        Timezone-aware UTC datetime.
    """
    return utc_now() + timedelta(days=days)
