"""
Catalog Repositories

Data access for the department -> subject -> resource hierarchy.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.catalog import Department, Subject, Resource


class DepartmentRepository(BaseRepository[Department]):
    """Repository for Department model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Department, db)

    async def get_active(self) -> List[Department]:
        result = await self.db.execute(
            select(Department)
            .where(Department.is_active.is_(True))
            .order_by(Department.name)
        )
        return list(result.scalars().all())

    async def get_by_code(self, code: str) -> Optional[Department]:
        result = await self.db.execute(
            select(Department).where(Department.code == code.upper())
        )
        return result.scalar_one_or_none()


class SubjectRepository(BaseRepository[Subject]):
    """Repository for Subject model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Subject, db)

    async def get_active_by_department(self, department_id: UUID) -> List[Subject]:
        result = await self.db.execute(
            select(Subject)
            .where(
                Subject.department_id == department_id,
                Subject.is_active.is_(True),
            )
            .order_by(Subject.code)
        )
        return list(result.scalars().all())

    async def get_active_with_department(self) -> List[Tuple[Subject, str]]:
        """Active subjects paired with their department name, ordered by code."""
        result = await self.db.execute(
            select(Subject, Department.name)
            .join(Department, Subject.department_id == Department.id)
            .where(Subject.is_active.is_(True))
            .order_by(Subject.code)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_by_department_and_code(self, department_id: UUID, code: str) -> Optional[Subject]:
        result = await self.db.execute(
            select(Subject).where(
                Subject.department_id == department_id,
                Subject.code == code.upper(),
            )
        )
        return result.scalar_one_or_none()

    async def is_active_subject(self, subject_id: UUID) -> bool:
        result = await self.db.execute(
            select(Subject.id).where(
                Subject.id == subject_id,
                Subject.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none() is not None


class ResourceRepository(BaseRepository[Resource]):
    """Repository for Resource model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Resource, db)

    async def get_active_for_subject(self, subject_id: UUID) -> List[Resource]:
        result = await self.db.execute(
            select(Resource)
            .where(
                Resource.subject_id == subject_id,
                Resource.is_active.is_(True),
            )
            .order_by(Resource.sort_order, Resource.title)
        )
        return list(result.scalars().all())

    async def get_all_with_subject(self) -> List[Tuple[Resource, Subject]]:
        result = await self.db.execute(
            select(Resource, Subject)
            .join(Subject, Resource.subject_id == Subject.id)
            .order_by(Subject.code, Resource.sort_order)
        )
        return [(row[0], row[1]) for row in result.all()]
