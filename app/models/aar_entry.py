from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class AarEntry(BaseModel):
    """After-action review. Rows are inserted once and never updated."""

    __tablename__ = "aar_entries"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)

    what_worked = Column(Text, nullable=False)
    what_blocked = Column(Text, nullable=False)
    tomorrow_plan = Column(Text, nullable=False)

    user = relationship("User", back_populates="aar_entries")
    subject = relationship("Subject")
