import uuid

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.core.lock_policy import utcnow
from app.models import AccessCode, StudySession, User
from app.repositories.access_code_repo import AccessCodeRepository
from app.services.admin_service import AdminService, AdminActionError, AdminNotFoundError
from app.services.session_service import SessionService
from app.services.subject_lock_service import (
    NotAuthorizedError,
    SubjectLockService,
    SubjectNotFoundError,
)

from helpers import create_user


@pytest.fixture
def service(db):
    return AdminService(db)


class TestAccessCodes:
    async def test_generate_codes(self, db, service, admin):
        codes = await service.generate_codes(admin, 3, prefix="med")

        assert len(set(codes)) == 3
        for code in codes:
            assert code.startswith("MED")
            assert len(code) == 3 + settings.ACCESS_CODE_LENGTH
            stored = await AccessCodeRepository(db).get_by_code(code)
            assert stored is not None and stored.used is False

    async def test_default_prefix(self, service, admin):
        codes = await service.generate_codes(admin, 1)
        assert codes[0].startswith(settings.ACCESS_CODE_PREFIX)

    @pytest.mark.parametrize("count", [0, settings.MAX_CODES_PER_REQUEST + 1])
    async def test_count_out_of_range(self, service, admin, count):
        with pytest.raises(AdminActionError):
            await service.generate_codes(admin, count)

    async def test_prefix_must_be_alphanumeric(self, service, admin):
        with pytest.raises(AdminActionError):
            await service.generate_codes(admin, 1, prefix="OP-")

    async def test_send_codes_queues_email(self, db, service, admin, arq_pool):
        codes, queued = await service.send_codes(admin, "friend@example.com", 2)

        assert queued is True
        jobs = arq_pool.emails_to("friend@example.com")
        assert len(jobs) == 1
        assert all(code in jobs[0]["html"] for code in codes)
        stored = await AccessCodeRepository(db).get_by_code(codes[0])
        assert stored.sent_to_email == "friend@example.com"
        assert stored.sent_at is not None

    async def test_list_codes_shows_redeemer(self, db, service, admin, access_code, user):
        await AccessCodeRepository(db).redeem(access_code.id, user.id, utcnow())
        await db.commit()

        rows = await service.list_codes(admin)

        assert [(code.code, email) for code, email in rows] == [("OPERATIVE2024", user.email)]

    async def test_requires_admin(self, service, user):
        with pytest.raises(NotAuthorizedError):
            await service.generate_codes(user, 1)


class TestUsers:
    async def test_list_users_with_subject(self, db, service, admin, user, subject):
        await SubjectLockService(db).declare_subject(user.id, subject.id)

        rows = await service.list_users(admin)

        by_email = {u.email: s for u, s in rows}
        assert by_email[user.email].id == subject.id
        assert by_email[admin.email] is None

    async def test_delete_user_releases_code_and_history(self, db, service, admin, user, subject, access_code):
        user_id = user.id
        await AccessCodeRepository(db).redeem(access_code.id, user_id, utcnow())
        await db.commit()
        await SubjectLockService(db).declare_subject(user_id, subject.id)
        await SessionService(db).start_session(user, planned_duration=25)

        await service.delete_user(admin, user_id)

        assert (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none() is None
        sessions = await db.execute(select(StudySession).where(StudySession.user_id == user_id))
        assert sessions.scalars().all() == []
        code = (await db.execute(select(AccessCode).where(AccessCode.id == access_code.id))).scalar_one()
        await db.refresh(code)
        assert code.used is False
        assert code.used_by is None

    async def test_cannot_delete_self(self, service, admin):
        with pytest.raises(AdminActionError):
            await service.delete_user(admin, admin.id)

    async def test_delete_unknown_user(self, service, admin):
        with pytest.raises(AdminNotFoundError):
            await service.delete_user(admin, uuid.uuid4())


class TestCatalog:
    async def test_create_department_and_subject(self, service, admin):
        department = await service.create_department(admin, "Engineering", "eng", icon="⚙️")
        assert department.code == "ENG"

        subject = await service.create_subject(admin, department.id, "Statics", "eng101", estimated_hours=30)
        assert subject.code == "ENG101"
        assert subject.department_id == department.id
        assert subject.is_active is True

    async def test_duplicate_department(self, service, admin, subject):
        with pytest.raises(AdminActionError):
            await service.create_department(admin, "Medicine again", "MED")

    async def test_duplicate_subject(self, service, admin, subject):
        with pytest.raises(AdminActionError):
            await service.create_subject(admin, subject.department_id, "Anatomy", "med101")

    async def test_subject_for_unknown_department(self, service, admin):
        with pytest.raises(AdminNotFoundError):
            await service.create_subject(admin, uuid.uuid4(), "Statics", "ENG101")

    async def test_deactivate_subject(self, db, service, admin, subject, user):
        updated = await service.set_subject_active(admin, subject.id, False)
        assert updated.is_active is False

        with pytest.raises(SubjectNotFoundError):
            await SubjectLockService(db).declare_subject(user.id, subject.id)

    async def test_resources(self, service, admin, subject):
        resource = await service.create_resource(
            admin, subject.id, "Heart anatomy", "https://example.com/heart", "video", duration_minutes=12
        )
        rows = await service.list_resources(admin)
        assert [(r.id, s.code) for r, s in rows] == [(resource.id, "MED101")]

        await service.delete_resource(admin, resource.id)
        assert await service.list_resources(admin) == []

        with pytest.raises(AdminNotFoundError):
            await service.delete_resource(admin, resource.id)

    async def test_resource_for_unknown_subject(self, service, admin):
        with pytest.raises(AdminNotFoundError):
            await service.create_resource(admin, uuid.uuid4(), "x", "https://example.com", "article")


async def test_generated_code_registers_once(db, admin):
    codes = await AdminService(db).generate_codes(admin, 1)
    code = await AccessCodeRepository(db).get_by_code(codes[0])
    other = await create_user(db, "new@example.com")

    repo = AccessCodeRepository(db)
    assert await repo.redeem(code.id, other.id, utcnow())
    assert not await repo.redeem(code.id, admin.id, utcnow())
    await db.commit()
