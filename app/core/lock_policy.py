"""
Subject Lock Policy

Pure functions describing the "one subject at a time" rules. Nothing here
touches the database: every value is derived from the stored user fields
and the wall-clock time passed in by the caller, so the API, the admin
queue and the unlock request all agree on the same numbers.

State machine (per user):

    UNASSIGNED --declare--> LOCKED --request (eligible)--> UNASSIGNED
                              |  ^
               request (not   |  | deny
                  eligible)   v  |
                           UNLOCK_PENDING --approve--> UNASSIGNED

Admin force-unlock moves LOCKED or UNLOCK_PENDING straight to UNASSIGNED.
"""

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

# ============================================================
# Policy constants
# ============================================================
LOCK_PERIOD_DAYS = 7
UNLOCK_MIN_SESSIONS = 5
UNLOCK_MIN_AARS = 3
MIN_SESSION_MINUTES = 5
MIN_AAR_WORDS = 20

LOCK_PERIOD = timedelta(days=LOCK_PERIOD_DAYS)
ONE_DAY = timedelta(days=1)


class LockState(str, enum.Enum):
    UNASSIGNED = "unassigned"
    LOCKED = "locked"
    UNLOCK_PENDING = "unlock_pending"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================
# State derivation
# ============================================================
def derive_state(user: Any) -> LockState:
    """Map the stored lock/request fields onto the explicit state tag."""
    if user.primary_subject_id is None:
        return LockState.UNASSIGNED
    if user.unlock_requested:
        return LockState.UNLOCK_PENDING
    return LockState.LOCKED


def days_elapsed(locked_at: Optional[datetime], now: datetime) -> int:
    """Whole days since the lock started (floor). 0 when there is no lock."""
    locked_at = as_utc(locked_at)
    if locked_at is None:
        return 0
    return max(0, (now - locked_at) // ONE_DAY)


def days_remaining(lock_expires_at: Optional[datetime], now: datetime) -> int:
    """Days until the cooldown ends, rounded up, never negative."""
    lock_expires_at = as_utc(lock_expires_at)
    if lock_expires_at is None:
        return 0
    seconds = (lock_expires_at - now).total_seconds()
    return max(0, math.ceil(seconds / ONE_DAY.total_seconds()))


def meets_unlock_requirements(days: int, session_count: int, aar_count: int) -> bool:
    return (
        days >= LOCK_PERIOD_DAYS
        and session_count >= UNLOCK_MIN_SESSIONS
        and aar_count >= UNLOCK_MIN_AARS
    )


@dataclass(frozen=True)
class LockStatus:
    """Read-only view of a user's lock, computed from stored fields."""

    state: LockState
    primary_subject_id: Any
    locked_at: Optional[datetime]
    lock_expires_at: Optional[datetime]
    is_locked: bool
    eligible: bool
    days_elapsed: int
    days_remaining: int
    session_count: int
    aar_count: int
    sessions_needed: int
    aars_needed: int
    unlock_requested: bool
    unlock_requested_at: Optional[datetime]

    def progress(self) -> Dict[str, int]:
        return {
            "days": self.days_elapsed,
            "sessions": self.session_count,
            "aars": self.aar_count,
        }


def evaluate_lock(user: Any, now: Optional[datetime] = None) -> LockStatus:
    """
    Compute the lock status of a user.

    `is_locked` stays true until the cooldown has expired *and* both
    counter thresholds are met. `eligible` is the unlock predicate used by
    the unlock request (whole elapsed days >= 7 plus the counters).
    """
    now = now or utcnow()
    state = derive_state(user)
    session_count = user.session_count or 0
    aar_count = user.aar_count or 0
    locked_at = as_utc(user.locked_at)
    lock_expires_at = as_utc(user.lock_expires_at)

    if state is LockState.UNASSIGNED:
        is_locked = False
        eligible = False
        elapsed = 0
    else:
        elapsed = days_elapsed(locked_at, now)
        expired = lock_expires_at is not None and lock_expires_at <= now
        is_locked = not (
            expired
            and aar_count >= UNLOCK_MIN_AARS
            and session_count >= UNLOCK_MIN_SESSIONS
        )
        eligible = meets_unlock_requirements(elapsed, session_count, aar_count)

    return LockStatus(
        state=state,
        primary_subject_id=user.primary_subject_id,
        locked_at=locked_at,
        lock_expires_at=lock_expires_at,
        is_locked=is_locked,
        eligible=eligible,
        days_elapsed=elapsed,
        days_remaining=days_remaining(lock_expires_at, now),
        session_count=session_count,
        aar_count=aar_count,
        sessions_needed=max(0, UNLOCK_MIN_SESSIONS - session_count),
        aars_needed=max(0, UNLOCK_MIN_AARS - aar_count),
        unlock_requested=bool(user.unlock_requested),
        unlock_requested_at=as_utc(user.unlock_requested_at),
    )


# ============================================================
# Transition field groups
# ============================================================
def locked_fields(subject_id: Any, now: datetime) -> Dict[str, Any]:
    """Field values for UNASSIGNED -> LOCKED."""
    return {
        "primary_subject_id": subject_id,
        "locked_at": now,
        "lock_expires_at": now + LOCK_PERIOD,
        "onboarding_complete": True,
        "unlock_requested": False,
        "unlock_requested_at": None,
    }


def pending_fields(now: datetime) -> Dict[str, Any]:
    """Field values for LOCKED -> UNLOCK_PENDING (also re-stamps a pending request)."""
    return {
        "unlock_requested": True,
        "unlock_requested_at": now,
    }


def denied_fields() -> Dict[str, Any]:
    """Field values for UNLOCK_PENDING -> LOCKED."""
    return {"unlock_requested": False}


def cleared_fields(reset_counters: bool = False) -> Dict[str, Any]:
    """Field values for any -> UNASSIGNED."""
    fields = {
        "primary_subject_id": None,
        "locked_at": None,
        "lock_expires_at": None,
        "onboarding_complete": False,
        "unlock_requested": False,
    }
    if reset_counters:
        fields["session_count"] = 0
        fields["aar_count"] = 0
    return fields


# ============================================================
# Feeder rules
# ============================================================
def session_minutes(started_at: datetime, now: datetime) -> int:
    """Whole minutes a session has run, rounded half up (4m30s counts as 5)."""
    started_at = as_utc(started_at)
    return max(0, math.floor((now - started_at).total_seconds() / 60 + 0.5))


def is_session_long_enough(minutes: int) -> bool:
    return minutes >= MIN_SESSION_MINUTES


def count_words(*parts: Optional[str]) -> int:
    """Whitespace-separated word count across all parts."""
    return len(" ".join(p for p in parts if p).split())


def aar_problems(what_worked: str, what_blocked: str, tomorrow_plan: str) -> List[str]:
    """Return the reasons an AAR would be rejected (empty list when valid)."""
    problems = []
    fields = {
        "what_worked": what_worked,
        "what_blocked": what_blocked,
        "tomorrow_plan": tomorrow_plan,
    }
    for name, value in fields.items():
        if not value or not value.strip():
            problems.append(f"{name} is required")

    words = count_words(what_worked, what_blocked, tomorrow_plan)
    if words < MIN_AAR_WORDS:
        problems.append(f"Minimum {MIN_AAR_WORDS} words required (got {words})")
    return problems
