from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================
# Request Schemas (What client sends)
# ============================================================

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    icon: Optional[str] = Field(None, max_length=10)


class SubjectCreate(BaseModel):
    department_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    estimated_hours: int = Field(20, ge=1, le=1000)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        """Codes are stored upper-case without surrounding spaces."""
        normalized = value.strip().upper()
        if not normalized:
            raise ValueError("Subject code cannot be empty")
        return normalized


class SubjectUpdate(BaseModel):
    is_active: bool


class ResourceCreate(BaseModel):
    subject_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2000)
    type: str = Field(..., min_length=1, max_length=50, description="video, article, pdf ...")
    duration_minutes: int = Field(0, ge=0)
    sort_order: int = 0


# ============================================================
# Response Schemas (What server sends back)
# ============================================================

class DepartmentResponse(BaseModel):
    id: UUID
    name: str
    code: str
    icon: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SubjectResponse(BaseModel):
    id: UUID
    department_id: UUID
    department_name: Optional[str] = None
    name: str
    code: str
    estimated_hours: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ResourceResponse(BaseModel):
    id: UUID
    subject_id: UUID
    subject_code: Optional[str] = None
    title: str
    url: str
    type: str
    duration_minutes: int
    sort_order: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DepartmentCreateResponse(BaseModel):
    message: str
    department: DepartmentResponse


class SubjectMutationResponse(BaseModel):
    message: str
    subject: SubjectResponse


class ResourceCreateResponse(BaseModel):
    message: str
    resource: ResourceResponse
