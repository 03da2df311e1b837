"""
Civil-day comparisons in the fixed reference time zone — pure functions.
"""
from datetime import date, datetime, timedelta, timezone, tzinfo

from ..config import get_reference_zone


def calendar_day(ts: datetime, tz: tzinfo | None = None) -> date:
    """Civil date of `ts` in the reference zone. Naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz or get_reference_zone()).date()


def same_calendar_day(a: datetime, b: datetime, tz: tzinfo | None = None) -> bool:
    return calendar_day(a, tz) == calendar_day(b, tz)


def is_next_calendar_day(a: datetime, b: datetime, tz: tzinfo | None = None) -> bool:
    """True iff the calendar day of `a` is exactly one day after that of `b`."""
    return calendar_day(a, tz) - timedelta(days=1) == calendar_day(b, tz)
