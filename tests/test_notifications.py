import pytest
from arq import Retry

from app.core.lock_policy import LockState, derive_state
from app.repositories.notification_repo import NotificationRepository
from app.repositories.user_repo import UserRepository
from app.services import notification_service
from app.services.subject_lock_service import SubjectLockService
from app.tasks import email_tasks

from helpers import create_user


async def test_queue_outage_does_not_undo_transition(db, monkeypatch, user, admin, subject):
    async def broken_pool():
        raise ConnectionError("redis down")

    monkeypatch.setattr(notification_service, "get_arq_pool", broken_pool)
    service = SubjectLockService(db)
    await service.declare_subject(user.id, subject.id)

    result = await service.request_unlock(user.id)

    assert result.unlocked is False
    assert derive_state(user) is LockState.UNLOCK_PENDING
    # The in-app copy is still written
    assert await NotificationRepository(db).unread_count(admin.id) == 1


def fail_on_call(db, monkeypatch, failing_call):
    """Make the n-th commit on `db` raise, the others go through."""
    real_commit = db.commit
    calls = []

    async def flaky_commit():
        calls.append(None)
        if len(calls) == failing_call:
            raise RuntimeError("db blip")
        await real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)


async def test_failed_notification_write_does_not_fail_unlock_request(
    db, monkeypatch, user, admin, subject, arq_pool
):
    await create_user(db, "second-admin@example.com", is_admin=True)
    service = SubjectLockService(db)
    await service.declare_subject(user.id, subject.id)
    user_id, admin_email = user.id, admin.email

    # First commit is the transition, the second is the first notification row
    fail_on_call(db, monkeypatch, 2)
    result = await service.request_unlock(user_id)

    assert result.unlocked is False
    assert result.status.state is LockState.UNLOCK_PENDING
    assert len(arq_pool.emails_to(admin_email)) == 1
    assert len(arq_pool.emails_to("second-admin@example.com")) == 1

    stored = await UserRepository(db).get_by_id(user_id, for_update=True)
    assert derive_state(stored) is LockState.UNLOCK_PENDING


async def test_failed_notification_write_does_not_fail_approval(
    db, monkeypatch, user, admin, subject, arq_pool
):
    service = SubjectLockService(db)
    await service.declare_subject(user.id, subject.id)
    user_id, email = user.id, user.email

    fail_on_call(db, monkeypatch, 2)
    await service.approve_unlock(admin, user_id)

    assert len(arq_pool.emails_to(email)) == 1
    stored = await UserRepository(db).get_by_id(user_id, for_update=True)
    assert stored.primary_subject_id is None
    assert stored.session_count == 0


async def test_enqueue_without_recipients(arq_pool):
    assert await notification_service.enqueue_email([], ("Subject", "<p>x</p>")) is False
    assert arq_pool.jobs == []


async def test_mark_all_read(db, user):
    for title in ("one", "two"):
        await notification_service.save_notification(db, user.id, title, "body")
    repo = NotificationRepository(db)
    assert await repo.unread_count(user.id) == 2

    assert await repo.mark_all_read(user.id) == 2
    assert await repo.unread_count(user.id) == 0


async def test_email_job_sends(monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_tasks, "send_email", lambda *args: sent.append(args) or True
    )

    result = await email_tasks.send_email_job({"job_id": "j1"}, ["a@example.com"], "Hi", "<p>Hi</p>")

    assert result == {"success": True, "recipients": ["a@example.com"]}
    assert sent == [(["a@example.com"], "Hi", "<p>Hi</p>", "html")]


async def test_email_job_retries_on_failure(monkeypatch):
    monkeypatch.setattr(email_tasks, "send_email", lambda *args: False)

    with pytest.raises(Retry):
        await email_tasks.send_email_job({"job_try": 2}, ["a@example.com"], "Hi", "<p>Hi</p>")
