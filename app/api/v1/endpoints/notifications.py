"""
Notification Endpoints

Endpoints:
----------
- GET   /notifications                - List user notifications
- GET   /notifications/unread-count   - Get unread count
- POST  /notifications/mark-all-read  - Mark all as read
"""

import json
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.models.notification import Notification
from app.repositories.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _serialize(n: Notification) -> dict:
    data = None
    if n.data:
        try:
            data = json.loads(n.data)
        except ValueError:
            logger.warning(f"Notification {n.id} has malformed data")
    return {
        "id": str(n.id),
        "title": n.title,
        "body": n.body,
        "type": n.type,
        "is_read": n.is_read,
        "data": data,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get(
    "",
    summary="List notifications for the current user",
)
async def list_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notifications = await NotificationRepository(db).get_for_user(current_user.id, skip, limit)
    return [_serialize(n) for n in notifications]


@router.get(
    "/unread-count",
    summary="Get count of unread notifications",
)
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationRepository(db).unread_count(current_user.id)
    return {"unread_count": count}


@router.post(
    "/mark-all-read",
    summary="Mark all notifications as read",
)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationRepository(db).mark_all_read(current_user.id)
    return {"message": "All notifications marked as read.", "updated": updated}
