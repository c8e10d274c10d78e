"""
Notification Service

Best-effort delivery of user and admin notifications:
- an in-app notification row (for registered users)
- an email job on the ARQ queue

Callers invoke these helpers after their own transaction has committed.
Nothing here raises: a failure is logged and the state change that
triggered the notification stands.
"""

import json
import logging
from typing import Any, Dict, List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.redis import get_arq_pool
from app.models.notification import Notification
from app.models.user import User
from app.utils import email as emails
from app.utils.email import EmailMessage

logger = logging.getLogger(__name__)

EMAIL_JOB = "send_email_job"


class Recipient(NamedTuple):
    """Plain copy of the fields needed to reach a user.

    Taken before any write so a failed write (which expires the session's
    instances) cannot trigger a lazy load afterwards.
    """

    id: UUID
    email: str

    @classmethod
    def of(cls, user: User) -> "Recipient":
        return cls(user.id, user.email)


async def save_notification(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    body: str,
    notification_type: str = "general",
    data: Optional[Dict[str, Any]] = None,
) -> bool:
    """Persist an in-app notification. Returns False on failure."""
    try:
        # A failed insert only rolls back the savepoint
        async with db.begin_nested():
            db.add(
                Notification(
                    user_id=user_id,
                    title=title,
                    body=body,
                    type=notification_type,
                    data=json.dumps(data, default=str) if data else None,
                )
            )
    except Exception as e:
        logger.warning("Failed to save notification for user %s: %s", user_id, e)
        return False

    try:
        await db.commit()
        return True
    except Exception as e:
        logger.warning("Failed to save notification for user %s: %s", user_id, e)
        await db.rollback()
        return False


async def enqueue_email(recipients: List[str], message: EmailMessage) -> bool:
    """Queue an email for the worker. Returns False if the queue is unavailable."""
    if not recipients:
        return False
    subject, html = message
    try:
        pool = await get_arq_pool()
        await pool.enqueue_job(EMAIL_JOB, recipients=recipients, subject=subject, html=html)
        logger.info("Email %r queued for %s", subject, recipients)
        return True
    except Exception as e:
        logger.warning("Failed to queue email %r for %s: %s", subject, recipients, e)
        return False


async def notify(
    db: AsyncSession,
    recipient: Recipient,
    kind: str,
    title: str,
    body: str,
    message: EmailMessage,
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """Send one notification to a registered user through both channels."""
    try:
        await save_notification(db, recipient.id, title, body, kind, data)
        await enqueue_email([recipient.email], message)
    except Exception as e:
        logger.warning("Failed to notify user %s (%s): %s", recipient.id, kind, e)


# ============================================================
# Unlock workflow
# ============================================================

async def notify_unlock_request(
    db: AsyncSession,
    user: User,
    admins: List[User],
    progress: Dict[str, int],
) -> None:
    """Tell every admin that `user` is waiting for an unlock decision."""
    requester = Recipient.of(user)
    recipients = [Recipient.of(admin) for admin in admins]

    message = emails.unlock_request_email(requester.email, progress)
    body = (
        f"{requester.email} requested an unlock "
        f"(days {progress['days']}, sessions {progress['sessions']}, AARs {progress['aars']})."
    )
    for recipient in recipients:
        await notify(
            db,
            recipient,
            "unlock_request",
            "Unlock request",
            body,
            message,
            data={"user_id": str(requester.id), **progress},
        )


async def notify_unlock_approved(db: AsyncSession, user: User) -> None:
    await notify(
        db,
        Recipient.of(user),
        "unlock_approved",
        "Subject unlocked",
        "Your subject has been unlocked. You can now choose a new subject.",
        emails.unlock_approved_email(),
    )


async def notify_unlock_denied(db: AsyncSession, user: User, reason: Optional[str] = None) -> None:
    body = "Your unlock request was not approved at this time."
    if reason:
        body = f"{body} Reason: {reason}"
    await notify(
        db,
        Recipient.of(user),
        "unlock_denied",
        "Unlock request denied",
        body,
        emails.unlock_denied_email(reason),
        data={"reason": reason} if reason else None,
    )


# ============================================================
# Account emails (no in-app copy)
# ============================================================

async def send_welcome(email: str) -> None:
    await enqueue_email([email], emails.welcome_email())


async def send_access_codes(email: str, codes: List[str]) -> bool:
    return await enqueue_email([email], emails.access_codes_email(codes))


async def send_password_reset(email: str, token: str) -> None:
    await enqueue_email([email], emails.password_reset_email(token))


async def send_password_changed(email: str) -> None:
    await enqueue_email([email], emails.password_changed_email())
