"""
SwallowSafe streaks — FastAPI trigger surface
"""
import hmac
import logging

from fastapi import FastAPI, Header, HTTPException, Depends, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import trigger_secret
from .db import StreakStore, get_store
from .errors import PersistenceUnavailableError, StreakError, TransactionConflictError
from .models import CompletionEvent, StreakRecord
from .processor import apply_completion
from .sweeper import sweep_broken_streaks

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="SwallowSafe Streaks API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.get("/health")
def health(store: StreakStore = Depends(get_store)):
    try:
        store.ping()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Auth ──────────────────────────────────────────────────────────────────────

def require_trigger(authorization: str = Header(...)) -> None:
    expected = trigger_secret()
    if not expected:
        raise HTTPException(status_code=500, detail="Trigger secret not configured")
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = authorization.removeprefix("Bearer ").strip()
    if not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=403, detail="Invalid trigger token")


def _raise_http(e: StreakError):
    if isinstance(e, TransactionConflictError):
        raise HTTPException(status_code=409, detail=e.to_dict()) from e
    if isinstance(e, PersistenceUnavailableError):
        raise HTTPException(status_code=503, detail=e.to_dict()) from e
    raise HTTPException(status_code=500, detail=e.to_dict()) from e


# ── Completions ───────────────────────────────────────────────────────────────

@app.post("/api/completions", status_code=200, dependencies=[Depends(require_trigger)])
def post_completion(body: CompletionEvent, store: StreakStore = Depends(get_store)):
    try:
        result = apply_completion(store, body.user_id, body.completed_at)
    except StreakError as e:
        logger.error("Error updating streak for %s...: %s", body.user_id[:8], e)
        _raise_http(e)
    return {
        "status": result.status,
        "streak": result.streak.model_dump(mode="json") if result.streak else None,
    }


# ── Sweeps ────────────────────────────────────────────────────────────────────

@app.post("/api/sweeps", status_code=200, dependencies=[Depends(require_trigger)])
@limiter.limit("30/minute")
def post_sweep(request: Request, strict: bool = False, store: StreakStore = Depends(get_store)):
    try:
        result = sweep_broken_streaks(store, strict=strict)
    except StreakError as e:
        logger.error("Error resetting streaks: %s", e)
        _raise_http(e)
    return result.model_dump(mode="json")


# ── Read model ────────────────────────────────────────────────────────────────

@app.get("/api/streaks/{user_id}")
def get_streak(user_id: str, store: StreakStore = Depends(get_store)):
    try:
        row = store.get_streak_row(user_id)
    except PersistenceUnavailableError as e:
        _raise_http(e)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user_id": user_id, **StreakRecord.from_row(row).model_dump(mode="json")}
