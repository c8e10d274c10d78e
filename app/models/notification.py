from sqlalchemy import Column, String, Boolean, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    type = Column(String(50), nullable=False, default="general")  # unlock_request, unlock_approved, unlock_denied, general
    is_read = Column(Boolean, default=False, nullable=False)
    data = Column(Text, nullable=True)  # JSON extra data

    user = relationship("User", backref="notifications")
