from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# ============================================================
# Access Codes
# ============================================================

class CodeGenerateRequest(BaseModel):
    count: int = Field(1, ge=1, description="Number of codes to create")
    prefix: Optional[str] = Field(None, max_length=10)


class CodeSendRequest(BaseModel):
    email: EmailStr
    count: int = Field(1, ge=1)


class AccessCodeResponse(BaseModel):
    id: UUID
    code: str
    used: bool
    used_by_email: Optional[str] = None
    used_at: Optional[datetime] = None
    sent_to_email: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime


class CodesGeneratedResponse(BaseModel):
    message: str
    codes: List[str]


class CodesSentResponse(BaseModel):
    message: str
    codes: List[str]
    email: str
    email_queued: bool


# ============================================================
# Users
# ============================================================

class AdminUserResponse(BaseModel):
    id: UUID
    email: str
    is_admin: bool
    is_active: bool
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    locked_at: Optional[datetime] = None
    lock_expires_at: Optional[datetime] = None
    session_count: int
    aar_count: int
    total_study_minutes: int
    unlock_requested: bool
    last_activity: Optional[datetime] = None
    created_at: datetime
