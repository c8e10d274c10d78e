import uuid

import pytest

from app.core import lock_policy
from app.core.lock_policy import LockState
from app.repositories.notification_repo import NotificationRepository
from app.repositories.user_repo import UserRepository
from app.services.subject_lock_service import (
    SubjectLockService,
    AlreadyLockedError,
    NoActiveLockError,
    NotAuthorizedError,
    SubjectNotFoundError,
    UserNotFoundError,
)

from helpers import backdate_lock, create_user, set_counters


@pytest.fixture
def service(db):
    return SubjectLockService(db)


@pytest.fixture
async def locked_user(db, service, user, subject):
    await service.declare_subject(user.id, subject.id)
    return user


class TestDeclareSubject:
    async def test_declare_locks_for_seven_days(self, service, user, subject):
        status = await service.declare_subject(user.id, subject.id)

        assert status.state is LockState.LOCKED
        assert status.is_locked is True
        assert status.days_remaining == 7
        assert status.sessions_needed == 5
        assert status.aars_needed == 3
        assert user.primary_subject_id == subject.id
        assert user.onboarding_complete is True
        expires = lock_policy.as_utc(user.lock_expires_at)
        locked = lock_policy.as_utc(user.locked_at)
        assert expires - locked == lock_policy.LOCK_PERIOD

    async def test_declare_twice_is_rejected(self, service, locked_user, other_subject):
        with pytest.raises(AlreadyLockedError):
            await service.declare_subject(locked_user.id, other_subject.id)

    async def test_unknown_subject(self, service, user):
        with pytest.raises(SubjectNotFoundError):
            await service.declare_subject(user.id, uuid.uuid4())

    async def test_inactive_subject(self, db, service, user, subject):
        subject.is_active = False
        await db.commit()
        with pytest.raises(SubjectNotFoundError):
            await service.declare_subject(user.id, subject.id)

    async def test_unknown_user(self, service, subject):
        with pytest.raises(UserNotFoundError):
            await service.declare_subject(uuid.uuid4(), subject.id)

    async def test_lock_taken_between_read_and_write(self, db, service, user, subject, other_subject):
        user_id = user.id
        # The identity map still says "unassigned" after this commit
        locked = await UserRepository(db).acquire_subject_lock(user_id, other_subject.id, lock_policy.utcnow())
        await db.commit()
        assert locked
        assert user.primary_subject_id is None

        with pytest.raises(AlreadyLockedError):
            await service.declare_subject(user_id, subject.id)

        fresh = await UserRepository(db).get_by_id(user_id, for_update=True)
        assert fresh.primary_subject_id == other_subject.id

    async def test_second_acquire_does_not_apply(self, db, user, subject, other_subject):
        repo = UserRepository(db)
        now = lock_policy.utcnow()
        assert await repo.acquire_subject_lock(user.id, subject.id, now)
        assert not await repo.acquire_subject_lock(user.id, other_subject.id, now)
        await db.commit()
        await repo.reload(user)
        assert user.primary_subject_id == subject.id


class TestRequestUnlock:
    async def test_without_lock(self, service, user):
        with pytest.raises(NoActiveLockError):
            await service.request_unlock(user.id)

    async def test_not_eligible_goes_to_admin_review(self, db, service, locked_user, admin, arq_pool):
        await set_counters(db, locked_user, sessions=2, aars=1)

        result = await service.request_unlock(locked_user.id)

        assert result.unlocked is False
        assert result.status.state is LockState.UNLOCK_PENDING
        assert result.progress == {"days": 0, "sessions": 2, "aars": 1}
        assert locked_user.unlock_requested is True
        assert locked_user.unlock_requested_at is not None
        assert locked_user.primary_subject_id is not None

        notifications = await NotificationRepository(db).get_for_user(admin.id)
        assert [n.type for n in notifications] == ["unlock_request"]
        assert len(arq_pool.emails_to(admin.email)) == 1

    async def test_repeat_request_restamps_without_notifying_again(
        self, db, service, locked_user, admin, arq_pool
    ):
        await service.request_unlock(locked_user.id)
        result = await service.request_unlock(locked_user.id)

        assert result.status.state is LockState.UNLOCK_PENDING
        notifications = await NotificationRepository(db).get_for_user(admin.id)
        assert len(notifications) == 1
        assert len(arq_pool.emails_to(admin.email)) == 1

    async def test_eligible_user_unlocks_and_keeps_counters(self, db, service, locked_user, admin, arq_pool):
        await backdate_lock(db, locked_user, days=7)
        await set_counters(db, locked_user, sessions=5, aars=3)

        result = await service.request_unlock(locked_user.id)

        assert result.unlocked is True
        assert result.status.state is LockState.UNASSIGNED
        assert result.progress == {"days": 7, "sessions": 5, "aars": 3}
        assert locked_user.primary_subject_id is None
        assert locked_user.locked_at is None
        assert locked_user.lock_expires_at is None
        assert locked_user.session_count == 5
        assert locked_user.aar_count == 3
        assert arq_pool.emails_to(admin.email) == []

    async def test_six_full_days_is_not_enough(self, db, service, locked_user):
        await backdate_lock(db, locked_user, days=6.9)
        await set_counters(db, locked_user, sessions=10, aars=10)

        result = await service.request_unlock(locked_user.id)

        assert result.unlocked is False
        assert locked_user.unlock_requested is True

    async def test_can_declare_again_after_unlock(self, db, service, locked_user, other_subject):
        await backdate_lock(db, locked_user, days=8)
        await set_counters(db, locked_user, sessions=5, aars=3)
        await service.request_unlock(locked_user.id)

        status = await service.declare_subject(locked_user.id, other_subject.id)
        assert status.primary_subject_id == other_subject.id
        assert status.session_count == 5


class TestAdminDecisions:
    async def test_approve_resets_counters(self, db, service, locked_user, admin, arq_pool):
        await set_counters(db, locked_user, sessions=3, aars=2)
        await service.request_unlock(locked_user.id)

        await service.approve_unlock(admin, locked_user.id)

        assert locked_user.primary_subject_id is None
        assert locked_user.unlock_requested is False
        assert locked_user.session_count == 0
        assert locked_user.aar_count == 0
        notifications = await NotificationRepository(db).get_for_user(locked_user.id)
        assert [n.type for n in notifications] == ["unlock_approved"]
        assert len(arq_pool.emails_to(locked_user.email)) == 1

    async def test_approve_without_lock(self, service, user, admin):
        with pytest.raises(NoActiveLockError):
            await service.approve_unlock(admin, user.id)

    async def test_deny_keeps_lock_and_counters(self, db, service, locked_user, admin, arq_pool):
        await set_counters(db, locked_user, sessions=3, aars=2)
        await service.request_unlock(locked_user.id)

        await service.deny_unlock(admin, locked_user.id, reason="Keep going")

        assert lock_policy.derive_state(locked_user) is LockState.LOCKED
        assert locked_user.session_count == 3
        assert locked_user.aar_count == 2
        notifications = await NotificationRepository(db).get_for_user(locked_user.id)
        assert [n.type for n in notifications] == ["unlock_denied"]
        assert "Keep going" in notifications[0].body

    async def test_deny_twice_notifies_once(self, db, service, locked_user, admin, arq_pool):
        await service.request_unlock(locked_user.id)

        await service.deny_unlock(admin, locked_user.id)
        await service.deny_unlock(admin, locked_user.id)

        assert lock_policy.derive_state(locked_user) is LockState.LOCKED
        assert len(arq_pool.emails_to(locked_user.email)) == 1

    async def test_force_unlock_without_request(self, db, service, locked_user, admin, arq_pool):
        await set_counters(db, locked_user, sessions=4, aars=4)

        await service.force_unlock(admin, locked_user.id)

        assert locked_user.primary_subject_id is None
        assert locked_user.session_count == 0
        assert locked_user.aar_count == 0
        assert len(arq_pool.emails_to(locked_user.email)) == 1

    async def test_force_unlock_unassigned_user_sends_nothing(self, service, user, admin, arq_pool):
        await service.force_unlock(admin, user.id)
        assert user.primary_subject_id is None
        assert arq_pool.emails_to(user.email) == []

    async def test_non_admin_is_rejected(self, db, service, locked_user):
        other = await create_user(db, "other@example.com")
        with pytest.raises(NotAuthorizedError):
            await service.approve_unlock(other, locked_user.id)
        with pytest.raises(NotAuthorizedError):
            await service.deny_unlock(other, locked_user.id)
        with pytest.raises(NotAuthorizedError):
            await service.force_unlock(other, locked_user.id)
        with pytest.raises(NotAuthorizedError):
            await service.list_unlock_requests(other)

    async def test_unknown_user(self, service, admin):
        with pytest.raises(UserNotFoundError):
            await service.force_unlock(admin, uuid.uuid4())

    async def test_unlock_queue(self, db, service, locked_user, admin, subject):
        await set_counters(db, locked_user, sessions=5, aars=3)
        await service.request_unlock(locked_user.id)

        entries = await service.list_unlock_requests(admin)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.user.id == locked_user.id
        assert entry.subject.id == subject.id
        assert entry.status.state is LockState.UNLOCK_PENDING
        assert entry.status.eligible is False

    async def test_lock_status_is_read_only(self, service, locked_user):
        before = await service.get_lock_status(locked_user.id)
        after = await service.get_lock_status(locked_user.id)
        assert before.state is after.state is LockState.LOCKED
        assert before.locked_at == after.locked_at
