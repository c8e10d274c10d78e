from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_activity = Column(DateTime(timezone=True), nullable=True)

    # Subject lock. These three are written as one group, never individually.
    primary_subject_id = Column(
        UUID(as_uuid=True),
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )
    locked_at = Column(DateTime(timezone=True), nullable=True)
    lock_expires_at = Column(DateTime(timezone=True), nullable=True)
    onboarding_complete = Column(Boolean, default=False, nullable=False)

    # Progress counters, only ever changed by SQL-side increments or resets
    session_count = Column(Integer, default=0, nullable=False)
    aar_count = Column(Integer, default=0, nullable=False)
    total_study_minutes = Column(Integer, default=0, nullable=False)

    # Unlock request
    unlock_requested = Column(Boolean, default=False, nullable=False)
    unlock_requested_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("session_count >= 0", name="ck_users_session_count"),
        CheckConstraint("aar_count >= 0", name="ck_users_aar_count"),
        CheckConstraint("total_study_minutes >= 0", name="ck_users_total_study_minutes"),
        CheckConstraint(
            "(primary_subject_id IS NULL AND locked_at IS NULL AND lock_expires_at IS NULL)"
            " OR (primary_subject_id IS NOT NULL AND locked_at IS NOT NULL AND lock_expires_at IS NOT NULL)",
            name="ck_users_lock_fields",
        ),
        CheckConstraint(
            "NOT unlock_requested OR primary_subject_id IS NOT NULL",
            name="ck_users_unlock_requires_lock",
        ),
    )

    # Relationships
    study_sessions = relationship("StudySession", back_populates="user", cascade="all, delete-orphan")
    aar_entries = relationship("AarEntry", back_populates="user", cascade="all, delete-orphan")
    password_resets = relationship("PasswordReset", back_populates="user", cascade="all, delete-orphan")
