"""
Email Delivery Tasks

Background job that sends one email through SMTP. Enqueued by the
notification service; a failed send is retried by ARQ with a growing delay.
"""

import asyncio
import logging
from typing import Any, Dict, List

from arq import Retry

from app.utils.email import send_email

logger = logging.getLogger(__name__)


async def send_email_job(
    ctx: Dict[str, Any],
    recipients: List[str],
    subject: str,
    html: str,
) -> Dict[str, Any]:
    """
    Send an email.

    Args:
        ctx: ARQ context (job_id, job_try, redis)
        recipients: Email addresses
        subject: Subject line
        html: HTML body

    Returns:
        Dict with delivery result
    """
    job_id = ctx.get("job_id", "unknown")
    job_try = ctx.get("job_try", 1)

    logger.info(f"Sending email {subject!r} to {recipients} (job: {job_id}, attempt: {job_try})")

    # smtplib blocks; keep the worker loop free
    sent = await asyncio.to_thread(send_email, recipients, subject, html, "html")
    if not sent:
        raise Retry(defer=job_try * 60)

    return {"success": True, "recipients": recipients}
