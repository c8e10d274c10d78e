from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class Department(BaseModel):
    __tablename__ = "departments"

    name = Column(String(100), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)
    icon = Column(String(10), default="📚", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    subjects = relationship("Subject", back_populates="department", cascade="all, delete-orphan")


# ===================
# Subject Model
# ===================
class Subject(BaseModel):
    __tablename__ = "subjects"

    department_id = Column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    estimated_hours = Column(Integer, default=20, nullable=False)

    # Inactive subjects stay referenced by existing locks but cannot be declared
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("department_id", "code", name="uq_subjects_department_code"),
    )

    department = relationship("Department", back_populates="subjects")
    resources = relationship("Resource", back_populates="subject", cascade="all, delete-orphan")


# ===================
# Resource Model
# ===================
class Resource(BaseModel):
    __tablename__ = "resources"

    subject_id = Column(
        UUID(as_uuid=True),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)  # video, article, pdf, quiz ...
    duration_minutes = Column(Integer, default=0, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    subject = relationship("Subject", back_populates="resources")
