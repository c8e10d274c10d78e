"""
AAR Repository

Data access layer for AarEntry model. Entries are insert-only.
"""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.aar_entry import AarEntry


class AarRepository(BaseRepository[AarEntry]):
    """Repository for AarEntry model."""

    def __init__(self, db: AsyncSession):
        super().__init__(AarEntry, db)

    def add_entry(
        self,
        user_id: UUID,
        subject_id: UUID,
        what_worked: str,
        what_blocked: str,
        tomorrow_plan: str,
    ) -> AarEntry:
        """Stage a new entry (committed by the caller)."""
        entry = AarEntry(
            user_id=user_id,
            subject_id=subject_id,
            what_worked=what_worked,
            what_blocked=what_blocked,
            tomorrow_plan=tomorrow_plan,
        )
        self.db.add(entry)
        return entry

    async def get_user_entries(
        self, user_id: UUID, skip: int = 0, limit: int = 50
    ) -> List[AarEntry]:
        result = await self.db.execute(
            select(AarEntry)
            .where(AarEntry.user_id == user_id)
            .order_by(AarEntry.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
