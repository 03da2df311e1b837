import os
from functools import lru_cache
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_MAX_TRANSACTION_ATTEMPTS = 5
DEFAULT_SWEEP_BATCH_SIZE = 500  # rows per multi-row reset update


@lru_cache(maxsize=1)
def get_reference_zone() -> ZoneInfo:
    return ZoneInfo(os.environ.get("STREAK_TIMEZONE", DEFAULT_TIMEZONE))


def max_transaction_attempts() -> int:
    return max(1, int(os.environ.get("STREAK_MAX_TRANSACTION_ATTEMPTS", DEFAULT_MAX_TRANSACTION_ATTEMPTS)))


def sweep_batch_size() -> int:
    return max(1, int(os.environ.get("STREAK_SWEEP_BATCH_SIZE", DEFAULT_SWEEP_BATCH_SIZE)))


def trigger_secret() -> str | None:
    return os.environ.get("TRIGGER_SECRET") or None
