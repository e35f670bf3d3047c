"""Batch matching of saved job alerts against recently published jobs.

One pass loads every active alert and every open job published inside the
alert window, filters the jobs per alert and sends one notification per
enabled channel for each alert that matched at least one job. Nothing is
recorded about what was already sent, so running the pass twice inside the
window notifies twice.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session, selectinload

from jobboard.config import settings
from jobboard.models.enums import NotificationChannel
from jobboard.models.job_alert import JobAlert
from jobboard.models.jobs import Job
from jobboard.models.profiles import JobSeeker
from jobboard.models.skills import JobSeekerSkill
from jobboard.schemas.job_alert import AlertProcessDetail, AlertProcessResponse
from jobboard.services.job_queries import recently_published_jobs
from jobboard.services.notification_dispatcher import NotificationDispatcher
from jobboard.services.skills_service import substring_overlap
from jobboard.utils.clock import utc_now


logger = logging.getLogger(__name__)

NO_ALERTS_MESSAGE = "No active job alerts to process"
PROCESSED_MESSAGE = "Job alerts processed successfully"


@dataclass(frozen=True)
class CandidateJob:
    id: int
    title: str
    description: str
    location: str
    type: str
    company_name: str
    salary_min: int | None = None
    salary_max: int | None = None
    employer_industry: str | None = None
    employer_description: str | None = None
    skills: tuple[str, ...] = ()
    featured: bool = False
    urgent: bool = False

    @classmethod
    def from_job(cls, job: Job) -> "CandidateJob":
        employer = job.employer
        return cls(
            id=job.id,
            title=job.title or "",
            description=job.description or "",
            location=job.location or "",
            type=job.type,
            company_name=employer.company_name if employer else "",
            salary_min=job.salary_min,
            salary_max=job.salary_max,
            employer_industry=employer.industry if employer else None,
            employer_description=employer.description if employer else None,
            skills=tuple(job.skill_names),
            featured=bool(job.featured),
            urgent=bool(job.urgent),
        )


@dataclass(frozen=True)
class AlertCriteria:
    id: int
    owner_email: str
    owner_first_name: str
    owner_phone: str | None = None
    owner_skills: tuple[str, ...] = ()
    title: str | None = None
    location: str | None = None
    industry: str | None = None
    job_type: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    email_alerts: bool = True
    sms_alerts: bool = False
    frequency: str = "DAILY"

    @classmethod
    def from_alert(cls, alert: JobAlert) -> "AlertCriteria":
        seeker = alert.job_seeker
        return cls(
            id=alert.id,
            owner_email=seeker.user.email,
            owner_first_name=seeker.first_name,
            owner_phone=seeker.phone,
            owner_skills=tuple(seeker.skill_names),
            title=alert.title,
            location=alert.location,
            industry=alert.industry,
            job_type=alert.job_type,
            salary_min=alert.salary_min,
            salary_max=alert.salary_max,
            email_alerts=bool(alert.email_alerts),
            sms_alerts=bool(alert.sms_alerts),
            frequency=alert.frequency,
        )


@dataclass
class AlertOutcome:
    alert: AlertCriteria
    jobs: list[CandidateJob]
    notifications_sent: int = 0


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def job_matches_alert(alert: AlertCriteria, job: CandidateJob) -> bool:
    """Every filter set on the alert must accept the job; the first failure rejects it.

    Empty strings and zero salary bounds count as "not set".
    """
    if alert.title and not _contains(job.title, alert.title):
        return False

    if alert.location and not _contains(job.location, alert.location):
        return False

    if alert.industry:
        sources = (job.employer_industry, job.employer_description, job.description)
        if not any(_contains(source, alert.industry) for source in sources):
            return False

    if alert.job_type and job.type != alert.job_type:
        return False

    # Salary ranges only need to overlap; an unknown job bound never rejects.
    if alert.salary_min and job.salary_max and job.salary_max < alert.salary_min:
        return False
    if alert.salary_max and job.salary_min and job.salary_min > alert.salary_max:
        return False

    if alert.owner_skills and not substring_overlap(alert.owner_skills, job.skills):
        return False

    return True


def find_matching_jobs(alert: AlertCriteria, jobs: Iterable[CandidateJob]) -> list[CandidateJob]:
    return [job for job in jobs if job_matches_alert(alert, job)]


def match_reasons(alert: AlertCriteria) -> list[str]:
    reasons: list[str] = []
    if alert.title:
        reasons.append(f'Title matches "{alert.title}"')
    if alert.location:
        reasons.append(f'Location preference for "{alert.location}"')
    if alert.industry:
        reasons.append(f'Industry interest in "{alert.industry}"')
    if alert.job_type:
        reasons.append(f'Job type preference for "{_humanize(alert.job_type)}"')
    if alert.salary_min or alert.salary_max:
        reasons.append("Salary range preferences")
    if alert.owner_skills:
        reasons.append("Your skills match job requirements")
    return reasons


def _humanize(value: str) -> str:
    return value.replace("_", " ")


def _job_url(job: CandidateJob) -> str:
    return f"{settings.public_base_url.rstrip('/')}/jobs/{job.id}"


def _format_salary(job: CandidateJob) -> str | None:
    if job.salary_min and job.salary_max:
        return f"Salary: €{job.salary_min:,} - €{job.salary_max:,}"
    return None


def build_alert_email(alert: AlertCriteria, jobs: list[CandidateJob]) -> tuple[str, str]:
    subject = f"New Job Matches - {len(jobs)} positions found"
    lines = [
        f"Hello {alert.owner_first_name},",
        "",
        f"We found {len(jobs)} new job opportunities that match your preferences:",
        "",
    ]
    for index, job in enumerate(jobs, start=1):
        lines.append(f"{index}. {job.title} at {job.company_name}")
        lines.append(f"   Location: {job.location}")
        lines.append(f"   Type: {_humanize(job.type)}")
        salary = _format_salary(job)
        if salary:
            lines.append(f"   {salary}")
        if job.featured:
            lines.append("   Featured job")
        if job.urgent:
            lines.append("   Urgent")
        lines.append(f"   View details: {_job_url(job)}")
        lines.append("")

    reasons = match_reasons(alert)
    if reasons:
        lines.append("Why these jobs match you:")
        lines.extend(f"- {reason}" for reason in reasons)
        lines.append("")

    manage_url = f"{settings.public_base_url.rstrip('/')}/dashboard/job-seeker/alerts"
    lines.append(f"You can manage your job alert preferences here: {manage_url}")
    return subject, "\n".join(lines)


def build_alert_sms(alert: AlertCriteria, jobs: list[CandidateJob]) -> str:
    top = jobs[0]
    return (
        f"{len(jobs)} new jobs match your alert! "
        f"Top match: {top.title} at {top.company_name} in {top.location}. "
        f"View all: {settings.public_base_url.rstrip('/')}/jobs"
    )


def _job_payload(job: CandidateJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "title": job.title,
        "companyName": job.company_name,
        "location": job.location,
        "type": job.type,
        "salaryMin": job.salary_min,
        "salaryMax": job.salary_max,
        "featured": job.featured,
        "urgent": job.urgent,
        "url": _job_url(job),
    }


def build_notification_payloads(alert: AlertCriteria, jobs: list[CandidateJob]) -> list[dict[str, Any]]:
    payloads: list[dict[str, Any]] = []
    if alert.email_alerts:
        subject, body = build_alert_email(alert, jobs)
        payloads.append(
            {
                "type": NotificationChannel.EMAIL.value,
                "recipient": alert.owner_email,
                "subject": subject,
                "message": body,
                "template": "JOB_ALERT",
                "data": {
                    "jobSeekerName": alert.owner_first_name,
                    "matchingJobsCount": len(jobs),
                    "jobs": [_job_payload(job) for job in jobs],
                    "alertFrequency": alert.frequency,
                },
            }
        )
    if alert.sms_alerts:
        payloads.append(
            {
                "type": NotificationChannel.SMS.value,
                # Seekers without a phone number get the SMS text at their account email.
                "recipient": alert.owner_phone or alert.owner_email,
                "message": build_alert_sms(alert, jobs),
                "template": "JOB_ALERT_SMS",
                "data": {
                    "jobSeekerName": alert.owner_first_name,
                    "matchingJobsCount": len(jobs),
                    "topJob": _job_payload(jobs[0]),
                },
            }
        )
    return payloads


async def notify_alert(dispatcher: NotificationDispatcher, alert: AlertCriteria, jobs: list[CandidateJob]) -> AlertOutcome:
    outcome = AlertOutcome(alert=alert, jobs=jobs)
    payloads = build_notification_payloads(alert, jobs)
    if not payloads:
        return outcome

    results = await asyncio.gather(*(dispatcher.send(p) for p in payloads), return_exceptions=True)
    for payload, result in zip(payloads, results):
        if isinstance(result, BaseException):
            logger.warning(
                "job alert %s: %s notification failed: %s", alert.id, payload["type"], result
            )
        else:
            outcome.notifications_sent += 1
    return outcome


def load_active_alerts(db: Session) -> list[AlertCriteria]:
    alerts = (
        db.query(JobAlert)
        .filter(JobAlert.active.is_(True))
        .options(
            selectinload(JobAlert.job_seeker).selectinload(JobSeeker.user),
            selectinload(JobAlert.job_seeker).selectinload(JobSeeker.skills).selectinload(JobSeekerSkill.skill),
        )
        .order_by(JobAlert.id.asc())
        .all()
    )
    return [AlertCriteria.from_alert(alert) for alert in alerts]


def load_candidate_jobs(db: Session, *, window_hours: int, now: datetime) -> list[CandidateJob]:
    return [CandidateJob.from_job(job) for job in recently_published_jobs(db, window_hours=window_hours, now=now)]


async def process_job_alerts(
    db: Session,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime | None = None,
    window_hours: int | None = None,
) -> AlertProcessResponse:
    now = now or utc_now()
    if window_hours is None:
        window_hours = settings.alert_window_hours

    alerts = await run_in_threadpool(load_active_alerts, db)
    if not alerts:
        logger.info("No active job alerts found")
        return AlertProcessResponse(success=True, message=NO_ALERTS_MESSAGE, processed=0, notifications_sent=0)

    jobs = await run_in_threadpool(load_candidate_jobs, db, window_hours=window_hours, now=now)
    logger.info("Checking %d recent jobs against %d job alerts", len(jobs), len(alerts))

    total_sent = 0
    details: list[AlertProcessDetail] = []
    async with dispatcher:
        for alert in alerts:
            matching = find_matching_jobs(alert, jobs)
            if not matching:
                continue
            logger.info("job alert %s matched %d jobs", alert.id, len(matching))
            outcome = await notify_alert(dispatcher, alert, matching)
            total_sent += outcome.notifications_sent
            details.append(
                AlertProcessDetail(
                    alert_id=alert.id,
                    job_seeker_email=alert.owner_email,
                    matching_jobs_count=len(matching),
                    notifications_sent=outcome.notifications_sent,
                )
            )

    logger.info("Job alert processing completed, sent %d notifications", total_sent)
    return AlertProcessResponse(
        success=True,
        message=PROCESSED_MESSAGE,
        processed=len(alerts),
        notifications_sent=total_sent,
        details=details,
    )
