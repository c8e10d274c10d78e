from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    TokenResponse,
    TokenRefreshResponse,
    RefreshTokenRequest,
    UserResponse,
    ErrorResponse,
    PasswordResetRequest,
    PasswordResetConfirm,
    MessageResponse,
)
from app.services.auth_service import AuthService, AuthError
from app.api.deps import get_current_user
from app.models.user import User

# ============================================================
# Router Setup
# ============================================================

router = APIRouter(tags=["Authentication"])


# ============================================================
# Registration Endpoint
# ============================================================

@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid access code, email taken or weak password"},
    }
)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new account with a single-use access code.

    Returns access token, refresh token, and user info.
    """
    auth_service = AuthService(db)

    try:
        return await auth_service.register(user_data)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


# ============================================================
# Login Endpoint
# ============================================================
@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        200: {"description": "Login successful"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    }
)
async def login(
    login_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and get tokens.

    - **email**: Registered email address
    - **password**: Account password
    """
    auth_service = AuthService(db)

    try:
        return await auth_service.login(login_data)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )


# ============================================================
# Token Refresh Endpoint
# ============================================================

@router.post(
    "/refresh",
    response_model=TokenRefreshResponse,
    responses={
        200: {"description": "Token refreshed successfully"},
        401: {"model": ErrorResponse, "description": "Invalid refresh token"},
    }
)
async def refresh_token(
    token_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Get new access token using refresh token.
    """
    auth_service = AuthService(db)

    try:
        return await auth_service.refresh_token(token_data.refresh_token)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )


# ============================================================
# Get Current User Endpoint
# ============================================================

@router.get(
    "/me",
    response_model=UserResponse,
    responses={
        200: {"description": "Current user info"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    }
)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Current user with primary subject and department.

    Requires `Authorization: Bearer <access_token>`.
    """
    return await AuthService(db).get_profile(current_user)


# ============================================================
# Password Reset Endpoints
# ============================================================

@router.post(
    "/forgot-password",
    response_model=MessageResponse,
)
async def forgot_password(
    request_data: PasswordResetRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Email a password reset link.

    The response is the same whether or not the email is registered.
    """
    await AuthService(db).request_password_reset(request_data.email)
    return MessageResponse(
        message="If that email is registered, a reset link has been sent"
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    }
)
async def reset_password(
    request_data: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the token from the reset email."""
    auth_service = AuthService(db)

    try:
        await auth_service.reset_password(request_data.token, request_data.new_password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return MessageResponse(message="Password has been reset")
