"""
Breakage sweeper: zeroes streaks with no completion inside the grace window.

Runs roughly once a day. Only `current_streak` is ever written here; longest
streak, session count and last completion stay as they are.
"""
import logging
from datetime import datetime, timezone

from postgrest.exceptions import APIError
from pydantic import ValidationError

from .config import sweep_batch_size
from .engine.streak import days_since_completion, is_streak_broken
from .errors import PersistenceUnavailableError, SweepIncompleteError
from .models import StreakRecord, SweepResult

logger = logging.getLogger(__name__)


def find_broken_streaks(store, now: datetime) -> tuple[list[dict], int]:
    """Returns (rows whose streak is broken, number of active rows scanned)."""
    rows = store.list_active_streaks()
    broken = []
    for row in rows:
        try:
            record = StreakRecord.from_row(row)
        except ValidationError as e:
            logger.warning("User %s... has an invalid streak row, skipping: %s",
                           str(row.get("user_id"))[:8], e)
            continue
        if record.last_completed_at is None:
            logger.warning("User %s... has streak %d but no last completion, skipping",
                           str(row.get("user_id"))[:8], record.current_streak)
            continue
        if is_streak_broken(record, now):
            logger.debug("User %s... broken: %d days since completion",
                         str(row.get("user_id"))[:8], days_since_completion(now, record.last_completed_at))
            broken.append(row)
    return broken, len(rows)


def sweep_broken_streaks(store, now: datetime | None = None, strict: bool = False,
                         dry_run: bool = False) -> SweepResult:
    """
    Reset every broken streak and return the counts.

    Default mode writes all resets as chunked multi-row updates. A completion
    that commits between the scan and the write can be overwritten by the
    stale zero. `strict=True` closes that race with one conditional update
    per record, skipping records that changed since the scan.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    logger.info("Checking for broken streaks...")
    broken, scanned = find_broken_streaks(store, now)
    result = SweepResult(swept_at=now, strict=strict, scanned=scanned, attempted=len(broken))

    if not broken:
        logger.info("No broken streaks to reset (%d active)", scanned)
        return result
    if dry_run:
        logger.info("Dry run: %d of %d active streaks are broken", len(broken), scanned)
        return result

    if strict:
        try:
            for row in broken:
                if store.reset_streak_if_unchanged(row):
                    result.reset += 1
                else:
                    result.skipped += 1
        except (APIError, PersistenceUnavailableError) as e:
            logger.error("Strict streak reset failed: applied %d of %d attempted: %s",
                         result.reset, result.attempted, e)
            raise SweepIncompleteError(result.reset, result.attempted) from e
    else:
        result.reset = store.reset_streaks([row["user_id"] for row in broken], sweep_batch_size())

    if result.reset < result.attempted:
        logger.warning("Reset %d of %d broken streaks (%d skipped)", result.reset, result.attempted, result.skipped)
    else:
        logger.info("Reset %d broken streaks", result.reset)
    return result
