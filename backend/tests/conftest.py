"""
Shared fixtures.

FakeStreakStore mirrors StreakStore's interface over a dict of `users` rows,
with the same compare-and-set semantics, so the processor and sweeper run
without a Supabase connection.
"""
import threading
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from swallowsafe.errors import SweepIncompleteError

NY = ZoneInfo("America/New_York")


def ny(year, month, day, hour=0, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=NY)


class FakeStreakStore:
    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.lock = threading.Lock()
        self.cas_calls = 0
        self.reset_batches: list[list[str]] = []
        self.fail_reset_after: int | None = None

    def add_user(self, user_id, current_streak=None, longest_streak=None,
                 total_sessions=None, last_completed_at=None) -> dict:
        row = {
            "user_id": user_id,
            "current_streak": current_streak,
            "longest_streak": longest_streak,
            "total_sessions": total_sessions,
            "last_completed_at": last_completed_at.isoformat() if last_completed_at else None,
        }
        self.rows[user_id] = row
        return row

    def ping(self):
        return None

    def get_streak_row(self, user_id):
        with self.lock:
            row = self.rows.get(user_id)
            return dict(row) if row else None

    def compare_and_set(self, user_id, expected_row, record):
        with self.lock:
            self.cas_calls += 1
            row = self.rows.get(user_id)
            if row is None:
                return False
            if (row["current_streak"] != expected_row.get("current_streak")
                    or row["total_sessions"] != expected_row.get("total_sessions")):
                return False
            row.update(record.to_row())
            return True

    def list_active_streaks(self):
        with self.lock:
            return [dict(r) for r in self.rows.values() if (r["current_streak"] or 0) > 0]

    def reset_streaks(self, user_ids, batch_size):
        applied = 0
        for start in range(0, len(user_ids), batch_size):
            chunk = user_ids[start:start + batch_size]
            if self.fail_reset_after is not None and applied >= self.fail_reset_after:
                raise SweepIncompleteError(applied, len(user_ids))
            self.reset_batches.append(chunk)
            with self.lock:
                for user_id in chunk:
                    if user_id in self.rows:
                        self.rows[user_id]["current_streak"] = 0
                        applied += 1
        return applied

    def reset_streak_if_unchanged(self, row):
        with self.lock:
            current = self.rows.get(row["user_id"])
            if current is None or not current["current_streak"]:
                return False
            if current["total_sessions"] != row.get("total_sessions"):
                return False
            current["current_streak"] = 0
            return True


@pytest.fixture
def store():
    return FakeStreakStore()
