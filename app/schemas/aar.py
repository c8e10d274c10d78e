from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AarSubmit(BaseModel):
    """After-action review. Word minimum is checked by the service."""

    what_worked: str = ""
    what_blocked: str = ""
    tomorrow_plan: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "what_worked": "Spaced flashcards on the cardiac cycle stuck well today",
                "what_blocked": "Phone notifications broke focus twice in the second block",
                "tomorrow_plan": "Review renal physiology with the phone in another room",
            }
        }
    )


class AarResponse(BaseModel):
    id: UUID
    subject_id: UUID
    what_worked: str
    what_blocked: str
    tomorrow_plan: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AarSubmitResponse(BaseModel):
    message: str
    aar: AarResponse
    aar_count: int
