"""Email / SMS delivery and the message templates used by request handlers.

Email goes out over SMTP when EMAIL_USER and EMAIL_PASSWORD are configured;
otherwise the message is only logged. There is no SMS provider, so SMS
messages are always logged.
"""
from __future__ import annotations

import logging
import re
import smtplib
import uuid
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Any, Optional

from jobboard.config import settings
from jobboard.models.enums import NotificationChannel
from jobboard.schemas.notifications import NotificationResult
from jobboard.utils.clock import utc_now


logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Job Board Notification"
_PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")


class UnknownChannelError(ValueError):
    pass


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str


@dataclass(frozen=True)
class Recipient:
    user_id: int
    email: Optional[str]
    name: str
    phone: Optional[str] = None
    email_enabled: bool = True
    sms_enabled: bool = False


def _base_url() -> str:
    return settings.public_base_url.rstrip("/")


def _salary_text(job: dict[str, Any]) -> str:
    low, high = job.get("salaryMin"), job.get("salaryMax")
    if low and high:
        return f"€{low:,} - €{high:,}"
    if low:
        return f"€{low:,}+"
    return "Competitive"


def render_email(template: str, data: dict[str, Any]) -> RenderedMessage:
    name = data.get("userName") or "there"
    if template == "JOB_ALERT":
        jobs = data.get("jobs") or []
        lines = [f"Hi {name},", "", f"We found {len(jobs)} new jobs matching your alert:", ""]
        for index, job in enumerate(jobs, start=1):
            lines.append(f"{index}. {job.get('title')} at {job.get('companyName')}")
            lines.append(f"   Location: {job.get('location')}")
            lines.append(f"   Salary: {_salary_text(job)}")
            lines.append(f"   View: {_base_url()}/jobs/{job.get('id')}")
        return RenderedMessage(subject=f"New Job Matches: {data.get('alertTitle', '')}".strip(), text="\n".join(lines))

    if template == "APPLICATION_UPDATE":
        lines = [
            f"Hi {name},",
            "",
            "Your application status has been updated:",
            "",
            f"Job: {data.get('jobTitle')}",
            f"Company: {data.get('companyName')}",
            f"Status: {data.get('status')}",
        ]
        if data.get("message"):
            lines.append(f"Message: {data['message']}")
        lines += ["", f"View your application here: {_base_url()}/applications/{data.get('applicationId')}"]
        return RenderedMessage(subject=f"Application Status Update: {data.get('jobTitle')}", text="\n".join(lines))

    if template == "NEW_APPLICATION":
        lines = [
            f"Hi {name},",
            "",
            "You have received a new application for your job posting:",
            "",
            f"Job: {data.get('jobTitle')}",
            f"Applicant: {data.get('applicantName')}",
            f"Applied: {data.get('appliedAt')}",
        ]
        bio = data.get("applicantBio")
        if bio:
            lines.append(f"Bio: {bio[:150]}")
        lines += ["", f"Review the application here: {_base_url()}/dashboard/employer/applications"]
        return RenderedMessage(subject=f"New Application Received: {data.get('jobTitle')}", text="\n".join(lines))

    return RenderedMessage(subject=DEFAULT_SUBJECT, text="You have a new notification.")


def render_sms(template: str, data: dict[str, Any]) -> str:
    if template == "JOB_ALERT":
        count = len(data.get("jobs") or [])
        return f"{count} new job{'s' if count != 1 else ''} match \"{data.get('alertTitle')}\". View: {_base_url()}/job-alerts"
    if template == "APPLICATION_UPDATE":
        return (
            f"Your application for {data.get('jobTitle')} is now {data.get('status')}. "
            f"View: {_base_url()}/applications/{data.get('applicationId')}"
        )
    if template == "NEW_APPLICATION":
        return (
            f"New application for {data.get('jobTitle')} from {data.get('applicantName')}. "
            f"Review: {_base_url()}/dashboard/employer/applications"
        )
    return "You have a new notification."


def _effective_from() -> str:
    # Gmail rewrites any other From address to the authenticated account.
    if "gmail" in (settings.smtp_server or "").lower() and settings.email_user:
        return settings.email_user
    return settings.email_from or settings.email_user or "noreply@jobboard.local"


def smtp_configured() -> bool:
    return bool(settings.email_user and settings.email_password)


def send_email(recipient: str, subject: str, body: str) -> None:
    if not smtp_configured():
        logger.info("email (not delivered, SMTP not configured) to=%s subject=%s", recipient, subject)
        logger.debug("email body:\n%s", body)
        return

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = _effective_from()
    msg["To"] = recipient

    with smtplib.SMTP(settings.smtp_server, settings.smtp_port) as server:
        server.starttls()
        server.login(settings.email_user, settings.email_password)
        server.sendmail(msg["From"], [recipient], msg.as_string())
    logger.info("email sent to=%s subject=%s", recipient, subject)


def send_sms(recipient: str, message: str) -> None:
    logger.info("sms to=%s message=%s", recipient, message)


def deliver(
    channel: str,
    recipient: str,
    message: str,
    *,
    subject: Optional[str] = None,
    template: Optional[str] = None,
) -> NotificationResult:
    """Deliver one message on one channel and describe the result."""
    if channel == NotificationChannel.EMAIL.value:
        logger.info("notification channel=EMAIL recipient=%s template=%s", recipient, template or "default")
        send_email(recipient, subject or DEFAULT_SUBJECT, message)
    elif channel == NotificationChannel.SMS.value:
        logger.info("notification channel=SMS recipient=%s template=%s", recipient, template or "default")
        send_sms(recipient, message)
    else:
        raise UnknownChannelError(channel)

    return NotificationResult(
        id=f"{channel.lower()}_{uuid.uuid4().hex[:12]}",
        type=channel,
        recipient=recipient,
        status="sent",
        timestamp=utc_now(),
    )


def notify(recipient: Recipient, template: str, data: dict[str, Any]) -> dict[str, bool]:
    """Send a templated message on every channel the recipient accepts.

    Delivery errors are logged and reported as False for that channel.
    """
    results = {"email": False, "sms": False}
    payload = {**data, "userName": recipient.name, "userEmail": recipient.email}

    if recipient.email_enabled and recipient.email:
        rendered = render_email(template, payload)
        try:
            send_email(recipient.email, rendered.subject, rendered.text)
            results["email"] = True
        except (smtplib.SMTPException, OSError):
            logger.exception("email notification failed template=%s user_id=%s", template, recipient.user_id)

    if recipient.sms_enabled and recipient.phone:
        if _PHONE_RE.match(recipient.phone):
            send_sms(recipient.phone, render_sms(template, payload))
            results["sms"] = True
        else:
            logger.warning("invalid phone number for user_id=%s", recipient.user_id)

    return results
