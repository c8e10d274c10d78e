"""
Subject Lock Service

Business logic for the primary-subject lock:
- declare a subject (UNASSIGNED -> LOCKED)
- request an unlock (auto-unlock when eligible, otherwise UNLOCK_PENDING)
- admin approve / deny / force unlock
- read-only lock status and the admin unlock queue

Every transition is one conditional UPDATE committed in its own
transaction (see UserRepository); eligibility numbers come from
app.core.lock_policy only. Notifications are sent after the commit and
can never undo a transition.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import lock_policy
from app.core.lock_policy import LockState, LockStatus
from app.models.user import User
from app.models.catalog import Subject
from app.repositories.user_repo import UserRepository
from app.repositories.catalog_repo import SubjectRepository
from app.services import notification_service

logger = logging.getLogger(__name__)


class SubjectLockError(Exception):
    pass


class UserNotFoundError(SubjectLockError):
    pass


class SubjectNotFoundError(SubjectLockError):
    pass


class AlreadyLockedError(SubjectLockError):
    pass


class NoActiveLockError(SubjectLockError):
    pass


class NotAuthorizedError(SubjectLockError):
    pass


@dataclass
class UnlockRequestResult:
    unlocked: bool
    status: LockStatus
    progress: Dict[str, int]


@dataclass
class UnlockRequestEntry:
    user: User
    subject: Optional[Subject]
    status: LockStatus


class SubjectLockService:
    """Service class for the subject lock state machine."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.subject_repo = SubjectRepository(db)

    # ============================================================
    # Lock Status
    # ============================================================
    async def get_lock_status(self, user_id: UUID) -> LockStatus:
        """
        Read-only lock view for a user.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self._get_user(user_id)
        return lock_policy.evaluate_lock(user)

    # ============================================================
    # Declare Subject
    # ============================================================
    async def declare_subject(self, user_id: UUID, subject_id: UUID) -> LockStatus:
        """
        Lock the user to a subject for the cooldown period.

        Raises:
            AlreadyLockedError: If a subject is already assigned
            SubjectNotFoundError: If the subject is unknown or inactive
        """
        user = await self._get_user(user_id)
        if user.primary_subject_id is not None:
            raise AlreadyLockedError("Subject already locked")

        if not await self.subject_repo.is_active_subject(subject_id):
            raise SubjectNotFoundError("Subject not found")

        now = lock_policy.utcnow()
        if not await self.user_repo.acquire_subject_lock(user_id, subject_id, now):
            # Another request locked the user between our read and the update
            await self.db.rollback()
            raise AlreadyLockedError("Subject already locked")

        await self.db.commit()
        await self.user_repo.reload(user)

        logger.info(f"User {user_id} locked to subject {subject_id} until {user.lock_expires_at}")
        return lock_policy.evaluate_lock(user, now)

    # ============================================================
    # Request Unlock
    # ============================================================
    async def request_unlock(self, user_id: UUID) -> UnlockRequestResult:
        """
        Unlock immediately if eligible, otherwise queue for admin review.

        Counters are kept on the self-service path.

        Raises:
            NoActiveLockError: If the user has no subject assigned
        """
        user = await self._get_user(user_id, for_update=True)
        now = lock_policy.utcnow()
        status = lock_policy.evaluate_lock(user, now)

        if status.state is LockState.UNASSIGNED:
            raise NoActiveLockError("No subject to unlock")

        subject_id = user.primary_subject_id
        if status.eligible:
            changed = await self.user_repo.release_lock(
                user_id, reset_counters=False, expected_subject_id=subject_id
            )
        else:
            changed = await self.user_repo.mark_unlock_pending(user_id, subject_id, now)

        if not changed:
            await self.db.rollback()
            raise NoActiveLockError("No subject to unlock")

        await self.db.commit()
        await self.user_repo.reload(user)
        result = UnlockRequestResult(
            unlocked=status.eligible,
            status=lock_policy.evaluate_lock(user, now),
            progress=status.progress(),
        )

        if status.eligible:
            logger.info(f"User {user_id} met all requirements, subject {subject_id} unlocked")
            return result

        logger.info(
            f"User {user_id} requested unlock of {subject_id} "
            f"(days={status.days_elapsed}, sessions={status.session_count}, aars={status.aar_count})"
        )
        # A repeated request only re-stamps the time; admins were told the first time
        if status.state is LockState.LOCKED:
            admins = await self.user_repo.get_admins()
            await notification_service.notify_unlock_request(
                self.db, user, admins, status.progress()
            )
        return result

    # ============================================================
    # Admin: Approve
    # ============================================================
    async def approve_unlock(self, admin: User, user_id: UUID) -> User:
        """
        Unlock a user regardless of eligibility and reset their counters.

        Raises:
            NotAuthorizedError: If `admin` is not an administrator
            UserNotFoundError: If the user does not exist
            NoActiveLockError: If the user has no subject assigned
        """
        self._require_admin(admin)
        user = await self._get_user(user_id, for_update=True)
        if user.primary_subject_id is None:
            raise NoActiveLockError("User has no subject to unlock")

        await self.user_repo.release_lock(user_id, reset_counters=True)
        await self.db.commit()
        await self.user_repo.reload(user)

        logger.info(f"Admin {admin.id} approved unlock for user {user_id}")
        await notification_service.notify_unlock_approved(self.db, user)
        return user

    # ============================================================
    # Admin: Deny
    # ============================================================
    async def deny_unlock(self, admin: User, user_id: UUID, reason: Optional[str] = None) -> User:
        """
        Reject a pending unlock request. Lock and counters are untouched.

        Denying when nothing is pending changes nothing and sends nothing.

        Raises:
            NotAuthorizedError: If `admin` is not an administrator
            UserNotFoundError: If the user does not exist
        """
        self._require_admin(admin)
        user = await self._get_user(user_id, for_update=True)

        was_pending = await self.user_repo.clear_unlock_request(user_id)
        await self.db.commit()
        await self.user_repo.reload(user)

        if was_pending:
            logger.info(f"Admin {admin.id} denied unlock for user {user_id}")
            await notification_service.notify_unlock_denied(self.db, user, reason)
        else:
            logger.info(f"Deny for user {user_id} ignored, no pending request")
        return user

    # ============================================================
    # Admin: Force Unlock
    # ============================================================
    async def force_unlock(self, admin: User, user_id: UUID) -> User:
        """
        Clear a user's lock and counters without a pending request.

        Raises:
            NotAuthorizedError: If `admin` is not an administrator
            UserNotFoundError: If the user does not exist
        """
        self._require_admin(admin)
        user = await self._get_user(user_id, for_update=True)
        was_locked = user.primary_subject_id is not None

        await self.user_repo.release_lock(user_id, reset_counters=True)
        await self.db.commit()
        await self.user_repo.reload(user)

        logger.info(f"Admin {admin.id} force-unlocked user {user_id}")
        if was_locked:
            await notification_service.notify_unlock_approved(self.db, user)
        return user

    # ============================================================
    # Admin: Unlock Queue
    # ============================================================
    async def list_unlock_requests(self, admin: User) -> List[UnlockRequestEntry]:
        """Pending requests with live eligibility, newest request first."""
        self._require_admin(admin)
        now = lock_policy.utcnow()
        return [
            UnlockRequestEntry(user=user, subject=subject, status=lock_policy.evaluate_lock(user, now))
            for user, subject in await self.user_repo.get_pending_unlocks()
        ]

    # ============================================================
    # Helper Methods
    # ============================================================
    async def _get_user(self, user_id: UUID, for_update: bool = False) -> User:
        user = await self.user_repo.get_by_id(user_id, for_update=for_update)
        if not user:
            raise UserNotFoundError("User not found")
        return user

    @staticmethod
    def _require_admin(user: User) -> None:
        if not user or not user.is_admin:
            raise NotAuthorizedError("Admin required")
