from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.lock_policy import LockState


# ============================================================
# Request Schemas
# ============================================================

class DeclareSubjectRequest(BaseModel):
    subject_id: UUID

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"subject_id": "550e8400-e29b-41d4-a716-446655440000"}
        }
    )


class DenyUnlockRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# ============================================================
# Response Schemas
# ============================================================

class LockStatusResponse(BaseModel):
    """Read-only lock view; built from lock_policy.LockStatus."""

    state: LockState
    primary_subject_id: Optional[UUID] = None
    locked_at: Optional[datetime] = None
    lock_expires_at: Optional[datetime] = None
    is_locked: bool
    eligible: bool
    days_elapsed: int
    days_remaining: int
    session_count: int
    aar_count: int
    sessions_needed: int
    aars_needed: int
    unlock_requested: bool
    unlock_requested_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeclareSubjectResponse(BaseModel):
    message: str
    lock_status: LockStatusResponse


class UnlockRequestResponse(BaseModel):
    message: str
    unlocked: bool
    progress: Dict[str, int]
    lock_status: LockStatusResponse


class UnlockQueueItem(BaseModel):
    user_id: UUID
    email: str
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    locked_at: Optional[datetime] = None
    unlock_requested_at: Optional[datetime] = None
    days_passed: int
    session_count: int
    aar_count: int
    requirements_met: bool


class AdminUnlockResponse(BaseModel):
    message: str
    user_id: UUID
