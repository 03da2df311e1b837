"""
Streak engine errors.

Every error carries a machine-readable `code` so the trigger layer can decide
whether to retry without parsing messages.
"""
from typing import Any


class StreakError(Exception):
    """Base class for all streak engine errors."""
    code: str = "STREAK_ERROR"
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class TransactionConflictError(StreakError):
    code = "TRANSACTION_CONFLICT"
    retryable = True

    def __init__(self, user_id: str, attempts: int):
        super().__init__(
            message=f"Streak update for user {user_id[:8]}... lost {attempts} concurrent write races.",
            details={"attempts": attempts},
        )


class PersistenceUnavailableError(StreakError):
    code = "PERSISTENCE_UNAVAILABLE"
    retryable = True

    def __init__(self, operation: str):
        super().__init__(
            message=f"Streak store unreachable during {operation}.",
            details={"operation": operation},
        )


class SweepIncompleteError(StreakError):
    code = "SWEEP_INCOMPLETE"
    retryable = True

    def __init__(self, applied: int, attempted: int):
        self.applied = applied
        self.attempted = attempted
        super().__init__(
            message=f"Sweep reset {applied} of {attempted} broken streaks before failing.",
            details={"applied": applied, "attempted": attempted},
        )
