"""
After-Action Review Service

Validates and stores AARs. Each accepted entry adds one to the user's
aar_count in the same transaction as the insert.
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import lock_policy
from app.models.aar_entry import AarEntry
from app.models.user import User
from app.repositories.aar_repo import AarRepository
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class AarError(Exception):
    pass


class AarTooShortError(AarError):
    pass


class NoSubjectDeclaredError(AarError):
    pass


class AarService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.aar_repo = AarRepository(db)
        self.user_repo = UserRepository(db)

    async def submit_aar(
        self,
        user: User,
        what_worked: str,
        what_blocked: str,
        tomorrow_plan: str,
    ) -> AarEntry:
        """
        Record an AAR against the user's current primary subject.

        Raises:
            AarTooShortError: If a field is empty or the combined text is under the word minimum
            NoSubjectDeclaredError: If the user has no primary subject
        """
        problems = lock_policy.aar_problems(what_worked, what_blocked, tomorrow_plan)
        if problems:
            raise AarTooShortError("; ".join(problems))

        if user.primary_subject_id is None:
            raise NoSubjectDeclaredError("Declare a subject first")

        entry = self.aar_repo.add_entry(
            user_id=user.id,
            subject_id=user.primary_subject_id,
            what_worked=what_worked.strip(),
            what_blocked=what_blocked.strip(),
            tomorrow_plan=tomorrow_plan.strip(),
        )
        await self.db.flush()
        await self.user_repo.increment_counters(user.id, aars=1, now=lock_policy.utcnow())
        await self.db.commit()
        await self.db.refresh(entry)
        await self.user_repo.reload(user)

        logger.info(f"User {user.id} submitted AAR {entry.id} (total {user.aar_count})")
        return entry

    async def list_entries(self, user: User, skip: int = 0, limit: int = 50) -> List[AarEntry]:
        return await self.aar_repo.get_user_entries(user.id, skip=skip, limit=limit)
