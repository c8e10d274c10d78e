from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


# ============================================================
# Request Schemas (What client sends)
# ============================================================

class UserRegister(BaseModel):
    """Schema for user registration request"""

    access_code: str = Field(min_length=1, max_length=50)
    email: EmailStr
    # Length policy is enforced by the service (MIN_PASSWORD_LENGTH)
    password: str = Field(max_length=100)

    @field_validator("access_code")
    @classmethod
    def normalize_access_code(cls, v: str) -> str:
        return v.strip().upper()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_code": "OPERATIVE2024",
                "email": "student@example.com",
                "password": "SecurePass123"
            }
        }
    )


class UserLogin(BaseModel):
    """Schema for user login request"""

    email: EmailStr
    password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "student@example.com",
                "password": "SecurePass123"
            }
        }
    )


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class PasswordResetRequest(BaseModel):
    """Schema for password reset request"""
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Schema for setting a new password with the emailed token"""
    token: str = Field(min_length=1, max_length=128)
    new_password: str = Field(max_length=100)


# ============================================================
# Response Schemas (What server sends back)
# ============================================================

class MessageResponse(BaseModel):
    """Schema for simple message responses"""
    message: str
    success: bool = True


class PrimarySubjectInfo(BaseModel):
    id: str
    name: str
    code: str
    department: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for user data in responses (NO password!)"""

    id: str
    email: str
    is_admin: bool
    is_active: bool
    onboarding_complete: bool
    primary_subject: Optional[PrimarySubjectInfo] = None
    locked_at: Optional[datetime] = None
    lock_expires_at: Optional[datetime] = None
    session_count: int
    aar_count: int
    total_study_minutes: int
    created_at: datetime
    last_activity: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Schema for authentication token response"""

    message: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires
    user: UserResponse


class TokenRefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Schema for error responses"""

    detail: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "detail": "Invalid email or password"
            }
        }
    )
