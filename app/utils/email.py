"""
Email Utility

SMTP delivery plus the messages the application sends. Builders return
(subject, html) and never send anything themselves; sending happens in
the ARQ worker via send_email().
"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from html import escape
from typing import List, Optional, Tuple
import logging

from app.core.config import settings
from app.core import lock_policy

logger = logging.getLogger(__name__)

EmailMessage = Tuple[str, str]


def send_email(
    recipients: List[str],
    subject: str,
    content: str,
    content_type: str = "html"
) -> bool:
    """
    Send an email using SMTP settings from config.

    Args:
        recipients: List of email addresses
        subject: Email subject
        content: Email body
        content_type: "plain" or "html"

    Returns:
        True if sent (or logged because SMTP is not configured), False on failure
    """
    if not settings.SMTP_SERVER or not settings.SMTP_EMAIL:
        logger.info(f"SMTP not configured. Would send to={recipients} subject={subject!r}")
        return True

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((settings.EMAIL_FROM_NAME, settings.SMTP_EMAIL))
        msg["To"] = ", ".join(recipients)

        msg.attach(MIMEText(content, content_type))

        port = int(settings.SMTP_PORT) if settings.SMTP_PORT else 587

        with smtplib.SMTP(settings.SMTP_SERVER, port) as server:
            server.starttls()
            if settings.SMTP_PASSWORD:
                server.login(settings.SMTP_EMAIL, settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"Email sent to {recipients}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipients}: {e}")
        return False


# ============================================================
# Message builders
# ============================================================

def _wrap(heading: str, color: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h1 style="color: {color};">{heading}</h1>
      {body}
      <p style="color: #888;">— The {escape(settings.EMAIL_FROM_NAME)} Team</p>
    </div>
    """


def _requirements_list() -> str:
    return f"""
      <ul>
        <li>{lock_policy.LOCK_PERIOD_DAYS} days with the subject</li>
        <li>{lock_policy.UNLOCK_MIN_SESSIONS} completed sessions</li>
        <li>{lock_policy.UNLOCK_MIN_AARS} after-action reviews</li>
      </ul>
    """


def welcome_email() -> EmailMessage:
    subject = f"Welcome to {settings.EMAIL_FROM_NAME}!"
    body = f"""
      <p>Your account has been successfully created.</p>
      <p>You're now ready to begin your focused study journey. Remember:</p>
      <ul>
        <li>One subject at a time</li>
        <li>Minimum {lock_policy.MIN_SESSION_MINUTES}-minute sessions</li>
        <li>Complete AARs for reflection</li>
      </ul>
    """
    return subject, _wrap(f"Welcome to {escape(settings.EMAIL_FROM_NAME)}!", "#00f0ff", body)


def access_codes_email(codes: List[str]) -> EmailMessage:
    plural = len(codes) > 1
    subject = f"Your {settings.EMAIL_FROM_NAME} Access Code{'s' if plural else ''}"
    items = "".join(
        f'<li style="font-family: monospace; font-size: 18px; margin: 10px 0;">{escape(c)}</li>'
        for c in codes
    )
    body = f"""
      <p>You've been invited to join {escape(settings.EMAIL_FROM_NAME)}!</p>
      <p>Use {'one of these codes' if plural else 'this code'} to register:</p>
      <ul style="list-style: none; padding: 20px; background: #1a1a2e; border-radius: 8px;">{items}</ul>
      <p>Visit <a href="{escape(settings.FRONTEND_URL)}">{escape(settings.FRONTEND_URL)}</a> to get started.</p>
      <p style="color: #888;">Each code can only be used once.</p>
    """
    return subject, _wrap(f"Your Access Code{'s' if plural else ''}", "#00f0ff", body)


def password_reset_email(token: str) -> EmailMessage:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password.html?token={token}"
    minutes = settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
    subject = f"Password Reset - {settings.EMAIL_FROM_NAME}"
    body = f"""
      <p>You requested a password reset for your account.</p>
      <p style="text-align: center; margin: 30px 0;">
        <a href="{escape(link)}" style="padding: 15px 30px; font-weight: bold;">Reset Password</a>
      </p>
      <p style="color: #888; font-size: 12px;">This link expires in {minutes} minutes. If you didn't request this, ignore this email.</p>
      <p style="color: #888; font-size: 12px;">Reset link: {escape(link)}</p>
    """
    return subject, _wrap("Password Reset Request", "#00f0ff", body)


def password_changed_email() -> EmailMessage:
    subject = f"Password Changed - {settings.EMAIL_FROM_NAME}"
    body = """
      <p>Your password has been changed.</p>
      <p>If you didn't make this change, please contact support immediately.</p>
    """
    return subject, _wrap("Password Changed Successfully", "#00ff88", body)


def unlock_request_email(user_email: str, progress: dict) -> EmailMessage:
    subject = f"Unlock Request - {settings.EMAIL_FROM_NAME}"
    body = f"""
      <p>User <strong>{escape(user_email)}</strong> has requested to unlock their subject.</p>
      <p>Progress:</p>
      <ul>
        <li>Days: {progress['days']}/{lock_policy.LOCK_PERIOD_DAYS}</li>
        <li>Sessions: {progress['sessions']}/{lock_policy.UNLOCK_MIN_SESSIONS}</li>
        <li>AARs: {progress['aars']}/{lock_policy.UNLOCK_MIN_AARS}</li>
      </ul>
      <p>Login to the admin panel to approve or deny this request.</p>
    """
    return subject, _wrap("Unlock Request", "#ffbe0b", body)


def unlock_approved_email() -> EmailMessage:
    subject = f"Subject Unlocked! - {settings.EMAIL_FROM_NAME}"
    body = """
      <p>Great news! Your subject has been unlocked.</p>
      <p>You can now choose a new subject to focus on.</p>
    """
    return subject, _wrap("Subject Unlocked!", "#00ff88", body)


def unlock_denied_email(reason: Optional[str] = None) -> EmailMessage:
    subject = f"Unlock Request Update - {settings.EMAIL_FROM_NAME}"
    reason_html = f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""
    body = f"""
      <p>Your unlock request was not approved at this time.</p>
      {reason_html}
      <p>Please continue working on meeting the requirements:</p>
      {_requirements_list()}
    """
    return subject, _wrap("Unlock Request Update", "#ffbe0b", body)
