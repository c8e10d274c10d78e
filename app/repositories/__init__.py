from app.repositories.base import BaseRepository
from app.repositories.user_repo import UserRepository
from app.repositories.access_code_repo import AccessCodeRepository
from app.repositories.password_reset_repo import PasswordResetRepository
from app.repositories.catalog_repo import (
    DepartmentRepository,
    SubjectRepository,
    ResourceRepository,
)
from app.repositories.study_session_repo import StudySessionRepository
from app.repositories.aar_repo import AarRepository
from app.repositories.notification_repo import NotificationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "AccessCodeRepository",
    "PasswordResetRepository",
    "DepartmentRepository",
    "SubjectRepository",
    "ResourceRepository",
    "StudySessionRepository",
    "AarRepository",
    "NotificationRepository",
]
