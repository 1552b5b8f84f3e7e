"""Calendar helpers for the day-based gate windows."""

from __future__ import annotations

from datetime import date, datetime


def local_date(ts: datetime) -> date:
    """Calendar date of a timestamp in the local timezone.

    Naive timestamps are taken to already be local time.
    """
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.date()


def calendar_days_between(start: datetime, end: datetime) -> int:
    """Whole calendar days from ``start`` to ``end`` (midnight to midnight).

    22:00 one evening to 18:00 the next day is 1 day even though only 20
    hours elapsed. Negative when ``end`` falls on an earlier date.
    """
    return (local_date(end) - local_date(start)).days
