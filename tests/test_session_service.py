import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from app.core import lock_policy
from app.models import StudySession
from app.services.progress_service import ProgressService
from app.services.session_service import (
    SessionService,
    NoSubjectDeclaredError,
    SessionAlreadyActiveError,
    SessionNotFoundError,
    SessionTooShortError,
)
from app.services.subject_lock_service import SubjectLockService

from helpers import backdate_session


@pytest.fixture
def service(db):
    return SessionService(db)


@pytest.fixture
async def locked_user(db, user, subject):
    await SubjectLockService(db).declare_subject(user.id, subject.id)
    return user


async def test_start_requires_subject(service, user):
    with pytest.raises(NoSubjectDeclaredError):
        await service.start_session(user, planned_duration=25)


async def test_start_binds_current_subject(service, locked_user, subject):
    session = await service.start_session(locked_user, planned_duration=25, session_type="practice")

    assert session.subject_id == subject.id
    assert session.user_id == locked_user.id
    assert session.session_type == "practice"
    assert session.is_completed is False
    assert session.started_at is not None


async def test_only_one_open_session(service, locked_user):
    first = await service.start_session(locked_user, planned_duration=25)

    with pytest.raises(SessionAlreadyActiveError) as exc_info:
        await service.start_session(locked_user, planned_duration=25)

    assert exc_info.value.session.id == first.id


async def test_open_session_index_rejects_second_row(db, locked_user, subject):
    now = lock_policy.utcnow()
    for _ in range(2):
        db.add(
            StudySession(
                user_id=locked_user.id,
                subject_id=subject.id,
                planned_duration=25,
                started_at=now,
                is_completed=False,
            )
        )
    with pytest.raises(IntegrityError):
        await db.flush()
    await db.rollback()


async def test_complete_credits_counters(db, service, locked_user):
    session = await service.start_session(locked_user, planned_duration=30)
    await backdate_session(db, session, minutes=30)

    result = await service.complete_session(locked_user, session.id, notes="Chapter 3")

    assert result.requires_aar is True
    assert result.session.is_completed is True
    assert result.session.actual_duration == 30
    assert result.session.notes == "Chapter 3"
    assert result.session.completed_at is not None
    assert locked_user.session_count == 1
    assert locked_user.total_study_minutes == 30
    assert locked_user.last_activity is not None


async def test_exactly_five_minutes_counts(db, service, locked_user):
    session = await service.start_session(locked_user, planned_duration=5)
    await backdate_session(db, session, minutes=5)

    result = await service.complete_session(locked_user, session.id)

    assert result.session.actual_duration == 5
    assert locked_user.session_count == 1


async def test_too_short_session_stays_open(db, service, locked_user):
    session = await service.start_session(locked_user, planned_duration=25)
    await backdate_session(db, session, minutes=3)

    with pytest.raises(SessionTooShortError):
        await service.complete_session(locked_user, session.id)

    active = await service.get_active_session(locked_user)
    assert active is not None and active.id == session.id
    assert locked_user.session_count == 0


async def test_complete_twice(db, service, locked_user):
    session = await service.start_session(locked_user, planned_duration=25)
    await backdate_session(db, session, minutes=10)
    await service.complete_session(locked_user, session.id)

    with pytest.raises(SessionNotFoundError):
        await service.complete_session(locked_user, session.id)
    assert locked_user.session_count == 1


async def test_complete_someone_elses_session(db, service, locked_user, admin):
    session = await service.start_session(locked_user, planned_duration=25)

    with pytest.raises(SessionNotFoundError):
        await service.complete_session(admin, session.id)


async def test_abandon_frees_the_slot(service, locked_user):
    session = await service.start_session(locked_user, planned_duration=25)

    await service.abandon_session(locked_user, session.id)

    assert await service.get_active_session(locked_user) is None
    replacement = await service.start_session(locked_user, planned_duration=25)
    assert replacement.id != session.id
    assert locked_user.session_count == 0


async def test_abandon_unknown_session(service, locked_user):
    with pytest.raises(SessionNotFoundError):
        await service.abandon_session(locked_user, uuid.uuid4())


async def test_sessions_keep_subject_after_unlock(db, service, locked_user, subject, admin, other_subject):
    session = await service.start_session(locked_user, planned_duration=25)
    await backdate_session(db, session, minutes=20)
    await service.complete_session(locked_user, session.id)

    lock_service = SubjectLockService(db)
    await lock_service.force_unlock(admin, locked_user.id)
    await lock_service.declare_subject(locked_user.id, other_subject.id)

    sessions = await service.list_sessions(locked_user)
    assert [s.subject_id for s in sessions] == [subject.id]


async def test_progress_totals_and_streak(db, service, locked_user):
    session = await service.start_session(locked_user, planned_duration=25)
    await backdate_session(db, session, minutes=25)
    await service.complete_session(locked_user, session.id)

    progress = await ProgressService(db).get_progress(locked_user)

    assert progress.total_sessions == 1
    assert progress.total_study_minutes == 25
    assert progress.total_aars == 0
    assert progress.current_streak == 1
    assert progress.lock_progress.sessions_needed == 4
