"""
Completion processor: applies one session completion to a user's streak.
"""
import logging
from datetime import datetime, timezone

from .config import max_transaction_attempts
from .engine.streak import next_streak_record
from .errors import TransactionConflictError
from .models import CompletionResult, StreakRecord

logger = logging.getLogger(__name__)


def apply_completion(store, user_id: str, completed_at: datetime, max_attempts: int | None = None) -> CompletionResult:
    """
    Read the user's record, derive the next one and write it back only if
    nobody else wrote in between; otherwise start over from the read.

    Safe under redelivery: a second completion on the same calendar day is a
    no-op. Raises TransactionConflictError once `max_attempts` writes have lost
    a race. Store errors propagate untouched.
    """
    attempts = max_attempts or max_transaction_attempts()
    if completed_at.tzinfo is None:
        completed_at = completed_at.replace(tzinfo=timezone.utc)

    for attempt in range(1, attempts + 1):
        row = store.get_streak_row(user_id)
        if row is None:
            # Either never existed or was deleted while we were retrying
            logger.warning("User %s... not found, completion dropped", user_id[:8])
            return CompletionResult(status="user_not_found", user_id=user_id)

        record = StreakRecord.from_row(row)
        new_record = next_streak_record(record, completed_at)
        if new_record is None:
            logger.info("User %s... already completed today, no streak change", user_id[:8])
            return CompletionResult(status="duplicate", user_id=user_id, streak=record)

        if store.compare_and_set(user_id, row, new_record):
            logger.info("Streak for %s...: current=%d longest=%d sessions=%d",
                        user_id[:8], new_record.current_streak,
                        new_record.longest_streak, new_record.total_sessions)
            return CompletionResult(status="applied", user_id=user_id, streak=new_record)

        logger.info("Concurrent streak write for %s..., retrying (%d/%d)", user_id[:8], attempt, attempts)

    raise TransactionConflictError(user_id, attempts)
