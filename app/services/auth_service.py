import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User, Subject, Department
from app.repositories.user_repo import UserRepository
from app.repositories.access_code_repo import AccessCodeRepository
from app.repositories.password_reset_repo import PasswordResetRepository
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    TokenResponse,
    TokenRefreshResponse,
    UserResponse,
    PrimarySubjectInfo,
)
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
    verify_token,
)
from app.core.lock_policy import utcnow
from app.core.config import settings
from app.services import notification_service

logger = logging.getLogger(__name__)


class AuthError(ValueError):
    pass


class InvalidAccessCodeError(AuthError):
    pass


class EmailTakenError(AuthError):
    pass


class WeakPasswordError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class InvalidResetTokenError(AuthError):
    pass


class AuthService:
    """
    Service class for authentication operations.

    """
    def __init__(self, db: AsyncSession):
        """
        Initialize with database session.

        Args:
            db: AsyncSession instance
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.access_code_repo = AccessCodeRepository(db)
        self.password_reset_repo = PasswordResetRepository(db)

    # ============================================================
    # User Registration
    # ============================================================
    async def register(self, user_data: UserRegister) -> TokenResponse:
        """
        Register a new user with a single-use access code.

        The user row and the code redemption are committed together; the
        redemption is conditional on the code still being unused, so one
        code can never create two accounts.

        Args:
            user_data: Validated registration data

        Returns:
            TokenResponse with tokens and user info

        Raises:
            WeakPasswordError: If the password is too short
            InvalidAccessCodeError: If the code is unknown or already used
            EmailTakenError: If the email is already registered
        """
        self._check_password(user_data.password)

        access_code = await self.access_code_repo.get_by_code(user_data.access_code)
        if not access_code or access_code.used:
            raise InvalidAccessCodeError("Invalid or already used access code")
        code_id = access_code.id

        if await self.user_repo.get_by_email(user_data.email):
            raise EmailTakenError("A user with this email already exists")

        user = self.user_repo.add_user(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
        )
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise EmailTakenError("A user with this email already exists")
        user_id = user.id

        if not await self.access_code_repo.redeem(code_id, user_id, utcnow()):
            await self.db.rollback()
            raise InvalidAccessCodeError("Invalid or already used access code")

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} with access code {user_data.access_code}")
        await notification_service.send_welcome(user.email)

        return self._create_token_response(user, "Registration successful")

    # ============================================================
    # User Login
    # ============================================================
    async def login(self, login_data: UserLogin) -> TokenResponse:
        """
        Authenticate user and return tokens.

        Raises:
            InvalidCredentialsError: If credentials are invalid or the account is deactivated
        """
        user = await self.user_repo.get_by_email(login_data.email)

        if not user or not verify_password(login_data.password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        if not user.is_active:
            raise InvalidCredentialsError("This account has been deactivated")

        await self.user_repo.touch_activity(user.id, utcnow())
        await self.db.commit()
        await self.user_repo.reload(user)

        return self._create_token_response(user, "Login successful")

    # ============================================================
    # Token Refresh
    # ============================================================
    async def refresh_token(self, refresh_token: str) -> TokenRefreshResponse:
        """
        Create new access token from refresh token.

        Raises:
            AuthError: If refresh token is invalid
        """
        user_id = verify_refresh_token(refresh_token)

        if not user_id:
            raise AuthError("Invalid or expired refresh token")

        user = await self.user_repo.get_by_id(self._parse_id(user_id))

        if not user or not user.is_active:
            raise AuthError("User not found or inactive")

        return TokenRefreshResponse(
            access_token=create_access_token(subject=str(user.id)),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )

    # ============================================================
    # Get Current User
    # ============================================================
    async def get_current_user(self, token: str) -> User:
        """
        Get user from access token.

        Raises:
            AuthError: If token is invalid or the user is gone/deactivated
        """
        payload = verify_token(token)

        if not payload:
            raise AuthError("Invalid or expired token")

        user = await self.user_repo.get_by_id(self._parse_id(payload.get("sub")))

        if not user:
            raise AuthError("User not found")

        if not user.is_active:
            raise AuthError("User account is deactivated")

        return user

    async def get_profile(self, user: User) -> UserResponse:
        """User info with the primary subject and its department resolved."""
        row = await self.user_repo.get_with_subject(user.id)
        if row is None:
            raise AuthError("User not found")
        user, subject, department = row
        return self.to_user_response(user, subject, department)

    # ============================================================
    # Password Reset - Request
    # ============================================================
    async def request_password_reset(self, email: str) -> bool:
        """
        Email a reset link if the address belongs to an active account.

        Always returns True to prevent email enumeration.
        """
        user = await self.user_repo.get_by_email(email)

        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive email")
            return True

        reset = await self.password_reset_repo.create_reset_token(user.id)
        await notification_service.send_password_reset(user.email, reset.token)

        logger.info(f"Password reset token issued for user {user.id}")
        return True

    # ============================================================
    # Password Reset - Reset Password
    # ============================================================
    async def reset_password(self, token: str, new_password: str) -> bool:
        """
        Set a new password using a valid, unused reset token.

        Raises:
            WeakPasswordError: If the new password is too short
            InvalidResetTokenError: If the token is invalid, used or expired
        """
        self._check_password(new_password)

        reset = await self.password_reset_repo.get_valid(token)
        if not reset:
            raise InvalidResetTokenError("Invalid or expired reset token")

        user = await self.user_repo.get_by_id(reset.user_id)
        if not user:
            raise InvalidResetTokenError("Invalid or expired reset token")

        if not await self.password_reset_repo.consume(reset.id):
            await self.db.rollback()
            raise InvalidResetTokenError("Invalid or expired reset token")

        user.password_hash = get_password_hash(new_password)
        await self.db.commit()

        logger.info(f"Password reset completed for user {user.id}")
        await notification_service.send_password_changed(user.email)
        return True

    # ============================================================
    # Helper Methods
    # ============================================================
    @staticmethod
    def _check_password(password: str) -> None:
        if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
            )

    @staticmethod
    def _parse_id(value: Optional[str]) -> UUID:
        try:
            return UUID(str(value))
        except ValueError:
            raise AuthError("Invalid token subject")

    @staticmethod
    def to_user_response(
        user: User,
        subject: Optional[Subject] = None,
        department: Optional[Department] = None,
    ) -> UserResponse:
        primary_subject = None
        if subject is not None:
            primary_subject = PrimarySubjectInfo(
                id=str(subject.id),
                name=subject.name,
                code=subject.code,
                department=department.name if department else None,
            )
        return UserResponse(
            id=str(user.id),
            email=user.email,
            is_admin=user.is_admin,
            is_active=user.is_active,
            onboarding_complete=user.onboarding_complete,
            primary_subject=primary_subject,
            locked_at=user.locked_at,
            lock_expires_at=user.lock_expires_at,
            session_count=user.session_count,
            aar_count=user.aar_count,
            total_study_minutes=user.total_study_minutes,
            created_at=user.created_at,
            last_activity=user.last_activity,
        )

    def _create_token_response(self, user: User, message: str) -> TokenResponse:
        """
        Create token response for a user.
        """
        return TokenResponse(
            message=message,
            access_token=create_access_token(subject=str(user.id)),
            refresh_token=create_refresh_token(subject=str(user.id)),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=self.to_user_response(user),
        )
