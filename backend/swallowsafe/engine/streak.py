"""
Streak transitions — pure functions, no DB access.
"""
from datetime import datetime, timedelta, timezone

from ..models import StreakRecord
from .calendar_days import is_next_calendar_day, same_calendar_day

ONE_DAY = timedelta(days=1)
GRACE_WINDOW = ONE_DAY


def next_streak_record(record: StreakRecord, completed_at: datetime) -> StreakRecord | None:
    """
    Returns the record after applying one completion, or None when the
    completion falls on the same calendar day as the last one (no-op).

    A completion on any day other than the next one restarts the streak at 1,
    including one timestamped before `last_completed_at`.
    """
    last = record.last_completed_at

    if last is not None and same_calendar_day(completed_at, last):
        return None

    if last is not None and is_next_calendar_day(completed_at, last):
        new_streak = record.current_streak + 1
    else:
        new_streak = 1

    return StreakRecord(
        current_streak=new_streak,
        longest_streak=max(new_streak, record.longest_streak),
        total_sessions=record.total_sessions + 1,
        last_completed_at=completed_at,
    )


def _elapsed(now: datetime, last: datetime) -> timedelta:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - last


def days_since_completion(now: datetime, last_completed_at: datetime) -> int:
    """Whole days of absolute elapsed time, not civil-day difference."""
    return _elapsed(now, last_completed_at) // ONE_DAY


def is_streak_broken(record: StreakRecord, now: datetime) -> bool:
    """
    An active streak is broken once more than the grace window (one day) of
    absolute time has elapsed since the last completion: 1.0 days is kept,
    1.5 days is broken. This is stricter than `days_since_completion(...) > 1`,
    which would wait for two whole days.
    """
    if record.current_streak <= 0 or record.last_completed_at is None:
        return False
    return _elapsed(now, record.last_completed_at) > GRACE_WINDOW
