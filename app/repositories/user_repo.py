"""
User Repository

Data access layer for User model.

The lock/counter helpers are single conditional UPDATE statements: the
guard (e.g. "only if no subject is assigned yet") is part of the WHERE
clause, so two concurrent requests can never both pass it. They return
whether a row was changed and do not commit.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models import (
    User,
    Subject,
    Department,
    StudySession,
    AarEntry,
    PasswordReset,
    Notification,
)
from app.core import lock_policy


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    # =================
    # Get by email
    # =================
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address (case-insensitive)."""
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    # =================
    # Get all users
    # =================
    async def get_all_with_subject(
        self, skip: int = 0, limit: int = 100
    ) -> List[Tuple[User, Optional[Subject]]]:
        """Get users with their primary subject, newest first."""
        result = await self.db.execute(
            select(User, Subject)
            .outerjoin(Subject, User.primary_subject_id == Subject.id)
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_with_subject(
        self, user_id: UUID
    ) -> Optional[Tuple[User, Optional[Subject], Optional[Department]]]:
        """Get a user joined with primary subject and its department."""
        result = await self.db.execute(
            select(User, Subject, Department)
            .outerjoin(Subject, User.primary_subject_id == Subject.id)
            .outerjoin(Department, Subject.department_id == Department.id)
            .where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1], row[2]

    async def get_admins(self) -> List[User]:
        """Active administrators (unlock request recipients)."""
        result = await self.db.execute(
            select(User).where(User.is_admin.is_(True), User.is_active.is_(True))
        )
        return list(result.scalars().all())

    async def get_pending_unlocks(self) -> List[Tuple[User, Optional[Subject]]]:
        """Users with an open unlock request, newest request first."""
        result = await self.db.execute(
            select(User, Subject)
            .outerjoin(Subject, User.primary_subject_id == Subject.id)
            .where(User.unlock_requested.is_(True))
            .order_by(User.unlock_requested_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    # =================
    # Create user
    # =================
    def add_user(self, email: str, password_hash: str, is_admin: bool = False) -> User:
        """Stage a new user in the session (committed by the caller)."""
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            is_admin=is_admin,
            is_active=True,
            onboarding_complete=False,
            session_count=0,
            aar_count=0,
            total_study_minutes=0,
            unlock_requested=False,
        )
        self.db.add(user)
        return user

    # =================
    # Lock transitions
    # =================
    async def _conditional_update(self, user_id: UUID, values: Dict[str, Any], *where) -> bool:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, *where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def acquire_subject_lock(self, user_id: UUID, subject_id: UUID, now: datetime) -> bool:
        """UNASSIGNED -> LOCKED, only if no subject is currently assigned."""
        return await self._conditional_update(
            user_id,
            lock_policy.locked_fields(subject_id, now),
            User.primary_subject_id.is_(None),
        )

    async def mark_unlock_pending(self, user_id: UUID, subject_id: UUID, now: datetime) -> bool:
        """LOCKED/UNLOCK_PENDING -> UNLOCK_PENDING, only while still locked to `subject_id`."""
        return await self._conditional_update(
            user_id,
            lock_policy.pending_fields(now),
            User.primary_subject_id == subject_id,
        )

    async def clear_unlock_request(self, user_id: UUID) -> bool:
        """UNLOCK_PENDING -> LOCKED. False when there was no pending request."""
        return await self._conditional_update(
            user_id,
            lock_policy.denied_fields(),
            User.unlock_requested.is_(True),
        )

    async def release_lock(
        self,
        user_id: UUID,
        reset_counters: bool = False,
        expected_subject_id: Optional[UUID] = None,
    ) -> bool:
        """
        Any -> UNASSIGNED.

        With expected_subject_id the release only happens if the user is
        still locked to that subject, so a transition computed from a
        stale read cannot clear a lock that changed in the meantime.
        """
        where = []
        if expected_subject_id is not None:
            where.append(User.primary_subject_id == expected_subject_id)
        return await self._conditional_update(
            user_id, lock_policy.cleared_fields(reset_counters), *where
        )

    # =================
    # Counters
    # =================
    async def increment_counters(
        self,
        user_id: UUID,
        sessions: int = 0,
        aars: int = 0,
        minutes: int = 0,
        now: Optional[datetime] = None,
    ) -> bool:
        """Atomic SQL-side increment of the progress counters."""
        values: Dict[str, Any] = {
            "session_count": User.session_count + sessions,
            "aar_count": User.aar_count + aars,
            "total_study_minutes": User.total_study_minutes + minutes,
        }
        if now is not None:
            values["last_activity"] = now
        return await self._conditional_update(user_id, values)

    async def touch_activity(self, user_id: UUID, now: datetime) -> None:
        await self._conditional_update(user_id, {"last_activity": now})

    # =================
    # Delete user
    # =================
    async def purge(self, user_id: UUID) -> bool:
        """
        Delete a user and their sessions, AARs, reset tokens and
        notifications. Does not commit.
        """
        for model in (StudySession, AarEntry, PasswordReset, Notification):
            await self.db.execute(
                delete(model)
                .where(model.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
        result = await self.db.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
