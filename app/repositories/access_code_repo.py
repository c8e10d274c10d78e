"""
Access Code Repository

Data access layer for AccessCode model.
"""

import secrets
import string
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.access_code import AccessCode
from app.models.user import User

CODE_ALPHABET = string.ascii_uppercase + string.digits


class AccessCodeRepository(BaseRepository[AccessCode]):
    """Repository for AccessCode model."""

    def __init__(self, db: AsyncSession):
        super().__init__(AccessCode, db)

    # =================
    # Generate code
    # =================
    @staticmethod
    def generate_code(prefix: str, length: int) -> str:
        """Prefix followed by `length` random upper-case letters/digits."""
        return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

    async def get_by_code(self, code: str) -> Optional[AccessCode]:
        """Look up a code case-insensitively."""
        result = await self.db.execute(
            select(AccessCode).where(func.upper(AccessCode.code) == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def code_exists(self, code: str) -> bool:
        return await self.get_by_code(code) is not None

    # =================
    # List codes
    # =================
    async def get_all_with_user(self) -> List[Tuple[AccessCode, Optional[str]]]:
        """All codes with the email of the user who redeemed them, newest first."""
        result = await self.db.execute(
            select(AccessCode, User.email)
            .outerjoin(User, AccessCode.used_by == User.id)
            .order_by(AccessCode.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    # =================
    # Create codes
    # =================
    def add_code(
        self,
        code: str,
        sent_to_email: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> AccessCode:
        """Stage a new unused code (committed by the caller)."""
        access_code = AccessCode(
            code=code,
            used=False,
            sent_to_email=sent_to_email,
            sent_at=sent_at,
        )
        self.db.add(access_code)
        return access_code

    # =================
    # Redeem / release
    # =================
    async def redeem(self, code_id: UUID, user_id: UUID, now: datetime) -> bool:
        """Mark a code used by `user_id`, only if it is still unused. Does not commit."""
        result = await self.db.execute(
            update(AccessCode)
            .where(AccessCode.id == code_id, AccessCode.used.is_(False))
            .values(used=True, used_by=user_id, used_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_for_user(self, user_id: UUID) -> int:
        """Make the codes redeemed by a user available again. Does not commit."""
        result = await self.db.execute(
            update(AccessCode)
            .where(AccessCode.used_by == user_id)
            .values(used=False, used_by=None, used_at=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
