from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, DateTime, Index, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class StudySession(BaseModel):
    __tablename__ = "study_sessions"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # The user's primary subject at the moment the session started
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)

    session_type = Column(String(50), default="active_recall", nullable=False)
    planned_duration = Column(Integer, nullable=False)  # minutes
    actual_duration = Column(Integer, nullable=True)    # minutes, set on completion
    notes = Column(Text, nullable=True)

    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)

    # At most one open session per user
    __table_args__ = (
        Index(
            "uq_study_sessions_one_active",
            "user_id",
            unique=True,
            postgresql_where=text("NOT is_completed"),
            sqlite_where=text("NOT is_completed"),
        ),
    )

    user = relationship("User", back_populates="study_sessions")
    subject = relationship("Subject")
