from __future__ import annotations

import html as html_lib
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import httpx

from app.core.settings import settings

logger = logging.getLogger("email")

PLATFORM_NAME = "University Assignment Approval Platform"
DISABLED_PROVIDERS = {"disabled", "none", ""}


@dataclass
class EmailSendResult:
    provider: str
    message_id: Optional[str] = None


class EmailSendError(RuntimeError):
    pass


def email_enabled() -> bool:
    return (settings.email_provider or "disabled").lower() not in DISABLED_PROVIDERS


def send_email(*, to_address: str, subject: str, html: str, text: str | None = None) -> EmailSendResult:
    provider = (settings.email_provider or "disabled").lower()
    if provider in DISABLED_PROVIDERS:
        raise EmailSendError("EMAIL_PROVIDER disabled")
    if not settings.email_from and not settings.smtp_username:
        raise EmailSendError("EMAIL_FROM not configured")

    if provider == "resend":
        return _send_resend(to_address=to_address, subject=subject, html=html, text=text)
    if provider == "postmark":
        return _send_postmark(to_address=to_address, subject=subject, html=html, text=text)
    if provider == "smtp":
        return _send_smtp(to_address=to_address, subject=subject, html=html, text=text)

    raise EmailSendError(f"Unsupported EMAIL_PROVIDER: {settings.email_provider}")


def _sender() -> str:
    return settings.email_from or settings.smtp_username or ""


def _send_resend(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.email_api_key:
        raise EmailSendError("EMAIL_API_KEY not configured for Resend")
    payload = {
        "from": _sender(),
        "to": [to_address],
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text
    headers = {
        "Authorization": f"Bearer {settings.email_api_key}",
        "Content-Type": "application/json",
    }
    with httpx.Client(timeout=15) as client:
        resp = client.post("https://api.resend.com/emails", json=payload, headers=headers)
    if resp.status_code >= 400:
        raise EmailSendError(f"Resend error: {resp.status_code} {resp.text}")
    data = resp.json()
    return EmailSendResult(provider="resend", message_id=data.get("id"))


def _send_postmark(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.email_api_key:
        raise EmailSendError("EMAIL_API_KEY not configured for Postmark")
    payload = {
        "From": _sender(),
        "To": to_address,
        "Subject": subject,
        "HtmlBody": html,
    }
    if text:
        payload["TextBody"] = text
    headers = {
        "X-Postmark-Server-Token": settings.email_api_key,
        "Content-Type": "application/json",
    }
    with httpx.Client(timeout=15) as client:
        resp = client.post("https://api.postmarkapp.com/email", json=payload, headers=headers)
    if resp.status_code >= 400:
        raise EmailSendError(f"Postmark error: {resp.status_code} {resp.text}")
    data = resp.json()
    return EmailSendResult(provider="postmark", message_id=data.get("MessageID"))


def _send_smtp(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.smtp_host:
        raise EmailSendError("SMTP_HOST not configured")
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = _sender()
    message["To"] = to_address
    message.set_content(text or "This email requires an HTML-capable client.")
    message.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(message)
    return EmailSendResult(provider="smtp")


def _deliver(*, kind: str, to_address: str, subject: str, text: str, preview: str) -> bool:
    if not email_enabled():
        logger.info("email_disabled kind=%s to=%s preview=%s", kind, to_address, preview)
        return True
    html = "<p>" + html_lib.escape(text).replace("\n", "<br>") + "</p>"
    try:
        result = send_email(to_address=to_address, subject=subject, html=html, text=text)
    except (EmailSendError, smtplib.SMTPException, OSError, httpx.HTTPError):
        logger.exception("email_send_failed kind=%s to=%s", kind, to_address)
        return False
    logger.info("email_sent kind=%s to=%s provider=%s", kind, to_address, result.provider)
    return True


def send_otp_email(to_address: str, otp: str) -> bool:
    minutes = settings.otp_ttl_minutes
    text = (
        f"Your OTP for approving the assignment is: {otp}\n\n"
        f"This code expires in {minutes} minutes. Do not share it with anyone."
    )
    return _deliver(
        kind="approval_otp",
        to_address=to_address,
        subject=f"Assignment approval OTP - {PLATFORM_NAME}",
        text=text,
        preview=otp,
    )


def send_rejection_email(to_address: str, assignment_title: str, feedback: str) -> bool:
    text = (
        f'Your assignment "{assignment_title}" has been rejected.\n\n'
        f"Feedback from reviewer:\n\n{feedback}\n\n"
        "You can resubmit the assignment from your dashboard after making the requested improvements."
    )
    return _deliver(
        kind="rejection",
        to_address=to_address,
        subject=f"Assignment rejected: {assignment_title} - {PLATFORM_NAME}",
        text=text,
        preview=feedback[:80],
    )
