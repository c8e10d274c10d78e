from pydantic import BaseModel

from app.schemas.lock import LockStatusResponse


class ProgressResponse(BaseModel):
    total_sessions: int
    total_aars: int
    total_study_minutes: int
    current_streak: int
    lock_progress: LockStatusResponse

    model_config = {"from_attributes": True}
