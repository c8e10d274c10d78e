"""
Admin Service

Administrative operations outside the subject lock itself:
- access codes (generate, generate-and-email, list)
- users (list, delete)
- catalog maintenance (departments, subjects, resources)

Unlock approvals/denials live in SubjectLockService. Every method checks
the caller is an administrator before touching anything.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.lock_policy import utcnow
from app.models.access_code import AccessCode
from app.models.catalog import Department, Subject, Resource
from app.models.user import User
from app.repositories.access_code_repo import AccessCodeRepository
from app.repositories.catalog_repo import (
    DepartmentRepository,
    SubjectRepository,
    ResourceRepository,
)
from app.repositories.user_repo import UserRepository
from app.services import notification_service
from app.services.subject_lock_service import NotAuthorizedError

logger = logging.getLogger(__name__)

# Attempts per code before giving up on finding an unused one
MAX_CODE_ATTEMPTS = 10


class AdminError(Exception):
    pass


class AdminActionError(AdminError):
    pass


class AdminNotFoundError(AdminError):
    pass


class AdminService:
    """Service class for the admin console."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.access_code_repo = AccessCodeRepository(db)
        self.department_repo = DepartmentRepository(db)
        self.subject_repo = SubjectRepository(db)
        self.resource_repo = ResourceRepository(db)

    # ============================================================
    # Access Codes
    # ============================================================
    async def generate_codes(
        self,
        admin: User,
        count: int,
        prefix: Optional[str] = None,
        sent_to_email: Optional[str] = None,
    ) -> List[str]:
        """
        Create `count` new unused access codes.

        Raises:
            NotAuthorizedError: If `admin` is not an administrator
            AdminActionError: If count or prefix is invalid, or no unique code could be found
        """
        _require_admin(admin)
        if count < 1 or count > settings.MAX_CODES_PER_REQUEST:
            raise AdminActionError(
                f"Count must be between 1 and {settings.MAX_CODES_PER_REQUEST}"
            )
        prefix = (prefix or settings.ACCESS_CODE_PREFIX).strip().upper()
        if not prefix.isalnum():
            raise AdminActionError("Prefix must be alphanumeric")

        sent_at = utcnow() if sent_to_email else None
        codes: List[str] = []
        for _ in range(count):
            code = await self._new_unique_code(prefix, set(codes))
            self.access_code_repo.add_code(code, sent_to_email=sent_to_email, sent_at=sent_at)
            codes.append(code)

        await self.db.commit()
        logger.info(f"Admin {admin.id} generated {count} access codes")
        return codes

    async def send_codes(self, admin: User, email: str, count: int = 1) -> Tuple[List[str], bool]:
        """Generate codes for `email` and queue them for delivery. Returns (codes, queued)."""
        codes = await self.generate_codes(admin, count, sent_to_email=email)
        queued = await notification_service.send_access_codes(email, codes)
        return codes, queued

    async def list_codes(self, admin: User) -> List[Tuple[AccessCode, Optional[str]]]:
        _require_admin(admin)
        return await self.access_code_repo.get_all_with_user()

    async def _new_unique_code(self, prefix: str, taken: set) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self.access_code_repo.generate_code(prefix, settings.ACCESS_CODE_LENGTH)
            if code not in taken and not await self.access_code_repo.code_exists(code):
                return code
        raise AdminActionError("Could not generate a unique access code")

    # ============================================================
    # Users
    # ============================================================
    async def list_users(
        self, admin: User, skip: int = 0, limit: int = 100
    ) -> List[Tuple[User, Optional[Subject]]]:
        _require_admin(admin)
        return await self.user_repo.get_all_with_subject(skip=skip, limit=limit)

    async def delete_user(self, admin: User, user_id: UUID) -> None:
        """
        Delete a user with their study history and free their access code.

        Raises:
            AdminActionError: If the admin tries to delete their own account
            AdminNotFoundError: If the user does not exist
        """
        _require_admin(admin)
        if admin.id == user_id:
            raise AdminActionError("Cannot delete your own account")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise AdminNotFoundError("User not found")
        email = user.email

        released = await self.access_code_repo.release_for_user(user_id)
        await self.user_repo.purge(user_id)
        await self.db.commit()
        self.db.expunge(user)

        logger.info(f"Admin {admin.id} deleted user {user_id} ({email}), released {released} code(s)")

    # ============================================================
    # Catalog: Departments & Subjects
    # ============================================================
    async def create_department(
        self, admin: User, name: str, code: str, icon: Optional[str] = None
    ) -> Department:
        _require_admin(admin)
        code = code.strip().upper()
        if await self.department_repo.get_by_code(code):
            raise AdminActionError(f"Department {code} already exists")

        fields = {"name": name.strip(), "code": code, "is_active": True}
        if icon:
            fields["icon"] = icon
        department = await self._create(self.department_repo, f"Department {code} already exists", **fields)
        logger.info(f"Admin {admin.id} created department {code}")
        return department

    async def create_subject(
        self,
        admin: User,
        department_id: UUID,
        name: str,
        code: str,
        estimated_hours: int = 20,
    ) -> Subject:
        _require_admin(admin)
        department = await self.department_repo.get_by_id(department_id)
        if not department:
            raise AdminNotFoundError("Department not found")

        code = code.strip().upper()
        if await self.subject_repo.get_by_department_and_code(department_id, code):
            raise AdminActionError(f"Subject {code} already exists in {department.code}")

        subject = await self._create(
            self.subject_repo,
            f"Subject {code} already exists in {department.code}",
            department_id=department_id,
            name=name.strip(),
            code=code,
            estimated_hours=estimated_hours,
            is_active=True,
        )
        logger.info(f"Admin {admin.id} created subject {code} in {department.code}")
        return subject

    async def set_subject_active(self, admin: User, subject_id: UUID, is_active: bool) -> Subject:
        """Deactivated subjects stay on existing locks but can no longer be declared."""
        _require_admin(admin)
        subject = await self.subject_repo.update(subject_id, is_active=is_active)
        if not subject:
            raise AdminNotFoundError("Subject not found")
        logger.info(f"Admin {admin.id} set subject {subject.code} active={is_active}")
        return subject

    # ============================================================
    # Catalog: Resources
    # ============================================================
    async def list_resources(self, admin: User) -> List[Tuple[Resource, Subject]]:
        _require_admin(admin)
        return await self.resource_repo.get_all_with_subject()

    async def create_resource(
        self,
        admin: User,
        subject_id: UUID,
        title: str,
        url: str,
        resource_type: str,
        duration_minutes: int = 0,
        sort_order: int = 0,
    ) -> Resource:
        _require_admin(admin)
        if not await self.subject_repo.get_by_id(subject_id):
            raise AdminNotFoundError("Subject not found")

        resource = await self.resource_repo.create(
            subject_id=subject_id,
            title=title.strip(),
            url=url.strip(),
            type=resource_type,
            duration_minutes=duration_minutes,
            sort_order=sort_order,
            is_active=True,
        )
        logger.info(f"Admin {admin.id} added resource {resource.id} to subject {subject_id}")
        return resource

    async def delete_resource(self, admin: User, resource_id: UUID) -> None:
        _require_admin(admin)
        if not await self.resource_repo.delete(resource_id):
            raise AdminNotFoundError("Resource not found")
        logger.info(f"Admin {admin.id} deleted resource {resource_id}")

    # ============================================================
    # Helper Methods
    # ============================================================
    async def _create(self, repo, conflict_message: str, **fields):
        try:
            return await repo.create(**fields)
        except IntegrityError:
            await self.db.rollback()
            raise AdminActionError(conflict_message)


def _require_admin(user: User) -> None:
    if not user or not user.is_admin:
        raise NotAuthorizedError("Admin required")
