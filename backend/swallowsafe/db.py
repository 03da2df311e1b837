"""
Supabase persistence for streak records.

Streak fields live on the `users` row (user_id, current_streak,
longest_streak, total_sessions, last_completed_at). Null streak columns are
the zero state of a user who never completed a session.
"""
import os
import logging
from functools import lru_cache
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from .errors import PersistenceUnavailableError, SweepIncompleteError
from .models import StreakRecord

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
STREAK_COLUMNS = "user_id, current_streak, longest_streak, total_sessions, last_completed_at"
PAGE_SIZE = 1000  # Supabase row limit per request


@lru_cache(maxsize=1)
def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


@lru_cache(maxsize=1)
def get_store() -> "StreakStore":
    return StreakStore(get_client())


def _execute(query, operation: str):
    try:
        return query.execute()
    except httpx.TransportError as e:
        raise PersistenceUnavailableError(operation) from e


def _match(query, column: str, value: Any):
    if value is None:
        return query.is_(column, "null")
    return query.eq(column, value)


class StreakStore:
    """
    Read/conditional-write access to streak records.

    PostgREST has no multi-statement transactions, so single-record atomicity
    is a compare-and-set: an update filtered on the values previously read,
    which matches zero rows if anyone wrote in between.
    """

    def __init__(self, client: Client):
        self.client = client

    def ping(self) -> None:
        _execute(self.client.table(USERS_TABLE).select("user_id").limit(1), "health check")

    def get_streak_row(self, user_id: str) -> dict | None:
        res = _execute(
            self.client.table(USERS_TABLE).select(STREAK_COLUMNS).eq("user_id", user_id),
            "streak read",
        )
        return res.data[0] if res.data else None

    def compare_and_set(self, user_id: str, expected_row: dict, record: StreakRecord) -> bool:
        """Write `record` only if current_streak and total_sessions still match `expected_row`."""
        query = self.client.table(USERS_TABLE).update(record.to_row()).eq("user_id", user_id)
        query = _match(query, "current_streak", expected_row.get("current_streak"))
        query = _match(query, "total_sessions", expected_row.get("total_sessions"))
        res = _execute(query, "streak write")
        return bool(res.data)

    def list_active_streaks(self, page_size: int = PAGE_SIZE) -> list[dict]:
        """All rows with current_streak > 0, fetched in pages."""
        rows: list[dict] = []
        offset = 0
        while True:
            res = _execute(
                self.client.table(USERS_TABLE)
                .select(STREAK_COLUMNS)
                .gt("current_streak", 0)
                .order("user_id")
                .range(offset, offset + page_size - 1),
                "active streak scan",
            )
            batch = res.data or []
            rows.extend(batch)
            if len(batch) < page_size:
                break
            offset += page_size
        return rows

    def reset_streaks(self, user_ids: list[str], batch_size: int) -> int:
        """
        Zero current_streak for every user in `user_ids`, one multi-row update
        per chunk. Not atomic across chunks: on failure the chunks already
        written stay written and SweepIncompleteError reports how many.
        """
        applied = 0
        for start in range(0, len(user_ids), batch_size):
            chunk = user_ids[start:start + batch_size]
            try:
                res = _execute(
                    self.client.table(USERS_TABLE).update({"current_streak": 0}).in_("user_id", chunk),
                    "streak reset batch",
                )
            except (APIError, PersistenceUnavailableError) as e:
                logger.error("Streak reset batch failed: applied %d of %d attempted: %s",
                             applied, len(user_ids), e)
                raise SweepIncompleteError(applied, len(user_ids)) from e
            applied += len(res.data or [])
        return applied

    def reset_streak_if_unchanged(self, row: dict) -> bool:
        """Zero current_streak only if no completion was applied since `row` was read."""
        query = (
            self.client.table(USERS_TABLE)
            .update({"current_streak": 0})
            .eq("user_id", row["user_id"])
            .gt("current_streak", 0)
        )
        query = _match(query, "total_sessions", row.get("total_sessions"))
        res = _execute(query, "conditional streak reset")
        return bool(res.data)
