"""
Access Code Model

Single-use invitation codes required to register. Once `used` is set it is
only ever cleared by the admin account-deletion cleanup.
"""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class AccessCode(BaseModel):
    __tablename__ = "access_codes"

    code = Column(String(50), unique=True, nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)
    used_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Set when an admin emails the code to someone
    sent_to_email = Column(String(255), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", foreign_keys=[used_by])
