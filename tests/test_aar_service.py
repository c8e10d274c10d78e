import pytest

from app.services.aar_service import AarService, AarTooShortError, NoSubjectDeclaredError
from app.services.subject_lock_service import SubjectLockService

WORKED = "Spaced repetition on the cardiac cycle went well"
BLOCKED = "Lost focus after lunch and checked my phone"
PLAN = "Start with renal physiology flashcards at eight"


@pytest.fixture
def service(db):
    return AarService(db)


@pytest.fixture
async def locked_user(db, user, subject):
    await SubjectLockService(db).declare_subject(user.id, subject.id)
    return user


async def test_submit_increments_aar_count(service, locked_user, subject):
    entry = await service.submit_aar(locked_user, WORKED, BLOCKED, PLAN)

    assert entry.subject_id == subject.id
    assert entry.what_worked == WORKED
    assert locked_user.aar_count == 1

    await service.submit_aar(locked_user, WORKED, BLOCKED, PLAN)
    assert locked_user.aar_count == 2
    assert len(await service.list_entries(locked_user)) == 2


async def test_fields_are_trimmed(service, locked_user):
    entry = await service.submit_aar(locked_user, f"  {WORKED}\n", BLOCKED, PLAN)
    assert entry.what_worked == WORKED


async def test_too_few_words(service, locked_user):
    with pytest.raises(AarTooShortError) as exc_info:
        await service.submit_aar(locked_user, "Good day", "Nothing", "More of the same")

    assert "Minimum 20 words" in str(exc_info.value)
    assert locked_user.aar_count == 0


async def test_empty_field(service, locked_user):
    with pytest.raises(AarTooShortError) as exc_info:
        await service.submit_aar(locked_user, WORKED + " " + PLAN, "", PLAN)

    assert "what_blocked is required" in str(exc_info.value)


async def test_requires_declared_subject(service, user):
    with pytest.raises(NoSubjectDeclaredError):
        await service.submit_aar(user, WORKED, BLOCKED, PLAN)
