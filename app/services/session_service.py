"""
Study Session Service

Start / complete / abandon study sessions. A completed session feeds the
subject lock: it bumps the user's session_count and total_study_minutes
in the same transaction that closes the session.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import lock_policy
from app.models.study_session import StudySession
from app.models.user import User
from app.repositories.study_session_repo import StudySessionRepository
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class SessionError(Exception):
    pass


class NoSubjectDeclaredError(SessionError):
    pass


class SessionAlreadyActiveError(SessionError):
    def __init__(self, session: StudySession):
        super().__init__("A session is already in progress")
        self.session = session


class SessionNotFoundError(SessionError):
    pass


class SessionTooShortError(SessionError):
    pass


@dataclass
class CompletedSession:
    session: StudySession
    requires_aar: bool = True


class SessionService:
    """Service class for study session operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.session_repo = StudySessionRepository(db)
        self.user_repo = UserRepository(db)

    # ============================================================
    # Start Session
    # ============================================================
    async def start_session(
        self,
        user: User,
        planned_duration: int,
        session_type: str = "active_recall",
    ) -> StudySession:
        """
        Open a session bound to the user's current primary subject.

        Raises:
            NoSubjectDeclaredError: If the user has no primary subject
            SessionAlreadyActiveError: If another session is still open
        """
        user_id = user.id
        if user.primary_subject_id is None:
            raise NoSubjectDeclaredError("Declare a subject first")

        active = await self.session_repo.get_active(user_id)
        if active:
            raise SessionAlreadyActiveError(active)

        session = self.session_repo.add_session(
            user_id=user_id,
            subject_id=user.primary_subject_id,
            planned_duration=planned_duration,
            session_type=session_type or "active_recall",
            started_at=lock_policy.utcnow(),
        )
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race against a concurrent start; the partial unique index won
            await self.db.rollback()
            active = await self.session_repo.get_active(user_id)
            if active is None:
                raise
            raise SessionAlreadyActiveError(active)

        await self.db.commit()
        await self.db.refresh(session)

        logger.info(f"User {user_id} started session {session.id} ({planned_duration} min planned)")
        return session

    # ============================================================
    # Complete Session
    # ============================================================
    async def complete_session(
        self,
        user: User,
        session_id: UUID,
        notes: Optional[str] = None,
    ) -> CompletedSession:
        """
        Close a session and credit it to the user's progress counters.

        The session stays open when it is too short, so the user can
        finish it later or abandon it.

        Raises:
            SessionNotFoundError: If there is no open session with this id for the user
            SessionTooShortError: If fewer than the minimum minutes have passed
        """
        session = await self.session_repo.get_for_user(session_id, user.id)
        if not session or session.is_completed:
            raise SessionNotFoundError("Active session not found")

        now = lock_policy.utcnow()
        minutes = lock_policy.session_minutes(session.started_at, now)
        if not lock_policy.is_session_long_enough(minutes):
            raise SessionTooShortError(
                f"Minimum session is {lock_policy.MIN_SESSION_MINUTES} minutes (got {minutes})"
            )

        if not await self.session_repo.mark_completed(session.id, minutes, now, notes):
            # Completed by a concurrent request
            await self.db.rollback()
            raise SessionNotFoundError("Active session not found")

        await self.user_repo.increment_counters(user.id, sessions=1, minutes=minutes, now=now)
        await self.db.commit()
        await self.db.refresh(session)
        await self.user_repo.reload(user)

        logger.info(f"User {user.id} completed session {session.id} ({minutes} min)")
        return CompletedSession(session=session, requires_aar=True)

    # ============================================================
    # Abandon Session
    # ============================================================
    async def abandon_session(self, user: User, session_id: UUID) -> None:
        """
        Discard an open session so a new one can be started.

        Raises:
            SessionNotFoundError: If there is no open session with this id for the user
        """
        if not await self.session_repo.delete_open(session_id, user.id):
            await self.db.rollback()
            raise SessionNotFoundError("Active session not found")
        await self.db.commit()
        logger.info(f"User {user.id} abandoned session {session_id}")

    # ============================================================
    # Queries
    # ============================================================
    async def get_active_session(self, user: User) -> Optional[StudySession]:
        return await self.session_repo.get_active(user.id)

    async def list_sessions(self, user: User, skip: int = 0, limit: int = 50) -> List[StudySession]:
        return await self.session_repo.get_user_sessions(user.id, skip=skip, limit=limit)
