"""
Study Session Repository

Data access layer for StudySession model.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.study_session import StudySession
from app.core.lock_policy import as_utc


class StudySessionRepository(BaseRepository[StudySession]):
    """Repository for StudySession model."""

    def __init__(self, db: AsyncSession):
        super().__init__(StudySession, db)

    async def get_for_user(self, session_id: UUID, user_id: UUID) -> Optional[StudySession]:
        """Get a session only if it belongs to the user."""
        result = await self.db.execute(
            select(StudySession).where(
                StudySession.id == session_id,
                StudySession.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_active(self, user_id: UUID) -> Optional[StudySession]:
        """The user's open session, if any."""
        result = await self.db.execute(
            select(StudySession)
            .where(
                StudySession.user_id == user_id,
                StudySession.is_completed.is_(False),
            )
            .order_by(StudySession.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_user_sessions(
        self, user_id: UUID, skip: int = 0, limit: int = 50
    ) -> List[StudySession]:
        result = await self.db.execute(
            select(StudySession)
            .where(StudySession.user_id == user_id)
            .order_by(StudySession.started_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    def add_session(
        self,
        user_id: UUID,
        subject_id: UUID,
        planned_duration: int,
        session_type: str,
        started_at: datetime,
    ) -> StudySession:
        """Stage a new open session (flushed/committed by the caller)."""
        session = StudySession(
            user_id=user_id,
            subject_id=subject_id,
            planned_duration=planned_duration,
            session_type=session_type,
            started_at=started_at,
            is_completed=False,
        )
        self.db.add(session)
        return session

    async def mark_completed(
        self,
        session_id: UUID,
        actual_duration: int,
        completed_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Close a session, only if it is still open. Does not commit."""
        values = {
            "is_completed": True,
            "completed_at": completed_at,
            "actual_duration": actual_duration,
        }
        if notes is not None:
            values["notes"] = notes
        result = await self.db.execute(
            update(StudySession)
            .where(
                StudySession.id == session_id,
                StudySession.is_completed.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete_open(self, session_id: UUID, user_id: UUID) -> bool:
        """Delete a session only while it is still open. Does not commit."""
        result = await self.db.execute(
            delete(StudySession)
            .where(
                StudySession.id == session_id,
                StudySession.user_id == user_id,
                StudySession.is_completed.is_(False),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def get_completion_dates(self, user_id: UUID) -> List[date]:
        """Distinct calendar dates (UTC) with at least one completed session, newest first."""
        result = await self.db.execute(
            select(StudySession.completed_at).where(
                StudySession.user_id == user_id,
                StudySession.is_completed.is_(True),
                StudySession.completed_at.isnot(None),
            )
        )
        dates = {as_utc(row[0]).date() for row in result.all()}
        return sorted(dates, reverse=True)
