from app.models.base import Base
from app.models.user import User
from app.models.access_code import AccessCode
from app.models.password_reset import PasswordReset
from app.models.catalog import Department, Subject, Resource
from app.models.study_session import StudySession
from app.models.aar_entry import AarEntry
from app.models.notification import Notification

__all__ = [
    "Base",
    "User",
    "AccessCode",
    "PasswordReset",
    "Department",
    "Subject",
    "Resource",
    "StudySession",
    "AarEntry",
    "Notification",
]
