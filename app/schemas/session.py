from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SessionStart(BaseModel):
    """Schema for starting a study session."""

    planned_duration: int = Field(..., ge=1, le=600, description="Planned minutes")
    session_type: str = Field("active_recall", min_length=1, max_length=50)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"planned_duration": 45, "session_type": "active_recall"}
        }
    )


class SessionComplete(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class SessionResponse(BaseModel):
    id: UUID
    subject_id: UUID
    session_type: str
    planned_duration: int
    actual_duration: Optional[int] = None
    notes: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    is_completed: bool

    model_config = ConfigDict(from_attributes=True)


class SessionStartResponse(BaseModel):
    message: str
    session: SessionResponse


class SessionCompleteResponse(BaseModel):
    message: str
    session: SessionResponse
    requires_aar: bool
    session_count: int
    total_study_minutes: int


class ActiveSessionResponse(BaseModel):
    session: Optional[SessionResponse] = None
