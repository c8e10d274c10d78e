"""Shared helpers for the test suite."""

from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import update

from app.core import lock_policy
from app.core.security import get_password_hash, create_access_token
from app.models import StudySession, User


class FakeArqPool:
    """Records enqueued jobs instead of talking to Redis."""

    def __init__(self):
        self.jobs: List[Dict[str, Any]] = []

    async def enqueue_job(self, function: str, **kwargs):
        self.jobs.append({"function": function, **kwargs})

    def emails_to(self, address: str) -> List[Dict[str, Any]]:
        return [job for job in self.jobs if address in job.get("recipients", [])]


async def create_user(db, email: str, password: str = "password123", is_admin: bool = False) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        is_admin=is_admin,
        is_active=True,
        onboarding_complete=False,
        session_count=0,
        aar_count=0,
        total_study_minutes=0,
        unlock_requested=False,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def backdate_lock(db, user: User, days: float) -> None:
    """Pretend the user's lock started `days` ago."""
    now = lock_policy.utcnow()
    locked_at = now - timedelta(days=days)
    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(locked_at=locked_at, lock_expires_at=locked_at + lock_policy.LOCK_PERIOD)
    )
    await db.commit()
    await db.refresh(user)


async def backdate_session(db, session: StudySession, minutes: float) -> None:
    """Pretend the session started `minutes` ago."""
    await db.execute(
        update(StudySession)
        .where(StudySession.id == session.id)
        .values(started_at=lock_policy.utcnow() - timedelta(minutes=minutes))
    )
    await db.commit()
    await db.refresh(session)


async def set_counters(db, user: User, sessions: int, aars: int) -> None:
    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(session_count=sessions, aar_count=aars)
    )
    await db.commit()
    await db.refresh(user)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}

