"""
Catalog Service

Read side of the department -> subject -> resource catalog.
"""

from typing import List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.catalog import Department, Subject, Resource
from app.models.user import User
from app.repositories.catalog_repo import (
    DepartmentRepository,
    SubjectRepository,
    ResourceRepository,
)


class CatalogError(Exception):
    pass


class DepartmentNotFoundError(CatalogError):
    pass


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.department_repo = DepartmentRepository(db)
        self.subject_repo = SubjectRepository(db)
        self.resource_repo = ResourceRepository(db)

    async def list_departments(self) -> List[Department]:
        return await self.department_repo.get_active()

    async def list_department_subjects(self, department_id: UUID) -> List[Subject]:
        """
        Active subjects of an active department.

        Raises:
            DepartmentNotFoundError: If the department is unknown or inactive
        """
        department = await self.department_repo.get_by_id(department_id)
        if not department or not department.is_active:
            raise DepartmentNotFoundError("Department not found")
        return await self.subject_repo.get_active_by_department(department_id)

    async def list_subjects(self) -> List[Tuple[Subject, str]]:
        return await self.subject_repo.get_active_with_department()

    async def list_resources_for_user(self, user: User) -> List[Resource]:
        """Resources of the user's primary subject; empty until a subject is declared."""
        if user.primary_subject_id is None:
            return []
        return await self.resource_repo.get_active_for_subject(user.primary_subject_id)

    async def is_active_subject(self, subject_id: UUID) -> bool:
        return await self.subject_repo.is_active_subject(subject_id)
