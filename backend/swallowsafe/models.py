from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _as_utc_if_naive(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class StreakRecord(BaseModel):
    """Per-user streak state. The default instance is the zero state of a user who never completed."""
    model_config = {"frozen": True}

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_sessions: int = Field(default=0, ge=0)
    last_completed_at: Optional[datetime] = None

    @field_validator("last_completed_at")
    @classmethod
    def validate_last_completed_at(cls, v):
        return _as_utc_if_naive(v)

    @model_validator(mode="after")
    def check_longest_covers_current(self):
        if self.current_streak > self.longest_streak:
            raise ValueError("current_streak cannot exceed longest_streak")
        return self

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StreakRecord":
        """Build from a `users` row. Null or missing streak columns mean the zero state."""
        current = row.get("current_streak") or 0
        return cls(
            current_streak=current,
            # rows written outside this service may lag; longest is at least current
            longest_streak=max(row.get("longest_streak") or 0, current),
            total_sessions=row.get("total_sessions") or 0,
            last_completed_at=row.get("last_completed_at"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_sessions": self.total_sessions,
            "last_completed_at": self.last_completed_at.isoformat() if self.last_completed_at else None,
        }


class CompletionEvent(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)
    completed_at: datetime
    model_config = {"extra": "ignore"}

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("user_id must not be blank")
        return v

    @field_validator("completed_at")
    @classmethod
    def validate_completed_at(cls, v):
        return _as_utc_if_naive(v)


class CompletionResult(BaseModel):
    status: Literal["applied", "duplicate", "user_not_found"]
    user_id: str
    streak: Optional[StreakRecord] = None


class SweepResult(BaseModel):
    swept_at: datetime
    strict: bool = False
    scanned: int = 0     # rows with current_streak > 0
    attempted: int = 0   # rows found broken
    reset: int = 0       # rows actually zeroed
    skipped: int = 0     # strict mode: rows changed since they were read
