"""
Password Reset Repository

Data access layer for PasswordReset model.
All password reset-related database operations.
"""

import secrets
from typing import Optional
from datetime import datetime, timezone, timedelta
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_

from app.repositories.base import BaseRepository
from app.models.password_reset import PasswordReset
from app.core.config import settings


class PasswordResetRepository(BaseRepository[PasswordReset]):
    """Repository for PasswordReset model."""

    def __init__(self, db: AsyncSession):
        super().__init__(PasswordReset, db)

    # =================
    # Generate reset token
    # =================
    @staticmethod
    def generate_reset_token() -> str:
        """Generate an unguessable URL-safe reset token."""
        return secrets.token_hex(32)

    # =================
    # Create reset token
    # =================
    async def create_reset_token(self, user_id: UUID) -> PasswordReset:
        """
        Create a new password reset token for a user.
        Invalidates any existing unused tokens for this user.

        Args:
            user_id: The user's ID

        Returns:
            PasswordReset instance with the new token
        """
        await self.invalidate_user_tokens(user_id)

        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
        )

        return await self.create(
            user_id=user_id,
            token=self.generate_reset_token(),
            expires_at=expires_at,
            is_used=False
        )

    # =================
    # Invalidate user tokens
    # =================
    async def invalidate_user_tokens(self, user_id: UUID) -> None:
        """Mark all existing unused tokens for a user as used."""
        await self.db.execute(
            update(PasswordReset)
            .where(
                and_(
                    PasswordReset.user_id == user_id,
                    PasswordReset.is_used.is_(False)
                )
            )
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    # =================
    # Verify reset token
    # =================
    async def get_valid(self, token: str) -> Optional[PasswordReset]:
        """
        Return the reset record for a token if it is unused and not expired.
        """
        result = await self.db.execute(
            select(PasswordReset).where(
                and_(
                    PasswordReset.token == token,
                    PasswordReset.is_used.is_(False),
                    PasswordReset.expires_at > datetime.now(timezone.utc)
                )
            )
        )
        return result.scalar_one_or_none()

    # =================
    # Consume token
    # =================
    async def consume(self, reset_id: UUID) -> bool:
        """
        Mark a token as used, only if it was still unused.

        Does not commit; the caller commits together with the password change.
        """
        result = await self.db.execute(
            update(PasswordReset)
            .where(PasswordReset.id == reset_id, PasswordReset.is_used.is_(False))
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
