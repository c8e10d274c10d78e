"""
Progress Service

Totals, study streak and the lock progress view for GET /progress.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import lock_policy
from app.core.lock_policy import LockStatus
from app.models.user import User
from app.repositories.study_session_repo import StudySessionRepository


@dataclass
class Progress:
    total_sessions: int
    total_aars: int
    total_study_minutes: int
    current_streak: int
    lock_progress: LockStatus


def compute_streak(dates: List[date], today: date) -> int:
    """
    Consecutive days with a completed session, counting back from today.

    A streak that ended yesterday is still current (today may not have a
    session yet). `dates` must be distinct and sorted newest first.
    """
    if not dates:
        return 0
    if dates[0] == today:
        expected = today
    elif dates[0] == today - timedelta(days=1):
        expected = dates[0]
    else:
        return 0

    streak = 0
    for day in dates:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


class ProgressService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.session_repo = StudySessionRepository(db)

    async def get_progress(self, user: User, now=None) -> Progress:
        now = now or lock_policy.utcnow()
        dates = await self.session_repo.get_completion_dates(user.id)
        return Progress(
            total_sessions=user.session_count or 0,
            total_aars=user.aar_count or 0,
            total_study_minutes=user.total_study_minutes or 0,
            current_streak=compute_streak(dates, now.date()),
            lock_progress=lock_policy.evaluate_lock(user, now),
        )
