"""Shared job queries and job serialisation.

Listing, recommendations and the alert matcher all go through these helpers, so
"open job" means the same thing everywhere: status PUBLISHED and not past its
expiry date.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, selectinload

from jobboard.models.applications import Application
from jobboard.models.enums import JobStatus
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer
from jobboard.models.skills import JobSkill
from jobboard.schemas.jobs import EmployerSummary, JobDetail, JobSummary
from jobboard.utils.clock import as_utc, utc_now


def _with_relations(query: Query) -> Query:
    return query.options(
        selectinload(Job.employer),
        selectinload(Job.skills).selectinload(JobSkill.skill),
    )


def open_job_criteria(now: datetime | None = None) -> tuple:
    now = now or utc_now()
    return (
        Job.status == JobStatus.PUBLISHED.value,
        or_(Job.expires_at.is_(None), Job.expires_at >= now),
    )


def open_jobs_query(db: Session, *, now: datetime | None = None) -> Query:
    return _with_relations(db.query(Job).filter(*open_job_criteria(now)))


def recently_published_jobs(db: Session, *, window_hours: int, now: datetime | None = None) -> list[Job]:
    """Open jobs published inside the trailing window, newest first.

    `published_at` is the publication time; rows created directly as PUBLISHED
    without it fall back to `created_at`.
    """
    now = now or utc_now()
    cutoff = now - timedelta(hours=window_hours)
    published = func.coalesce(Job.published_at, Job.created_at)
    return (
        open_jobs_query(db, now=now)
        .filter(published >= cutoff)
        .order_by(published.desc(), Job.id.desc())
        .all()
    )


def recommendation_candidates(db: Session, *, exclude_job_ids: set[int], limit: int = 50) -> list[Job]:
    query = open_jobs_query(db)
    if exclude_job_ids:
        query = query.filter(Job.id.notin_(exclude_job_ids))
    return (
        query.order_by(Job.featured.desc(), Job.urgent.desc(), Job.created_at.desc(), Job.id.desc())
        .limit(limit)
        .all()
    )


def is_expired(job: Job, *, now: datetime | None = None) -> bool:
    expires_at = as_utc(job.expires_at)
    return expires_at is not None and expires_at < (now or utc_now())


def application_count(db: Session, job_id: int) -> int:
    return int(db.query(func.count(Application.id)).filter(Application.job_id == job_id).scalar() or 0)


def employer_summary(employer: Employer | None) -> EmployerSummary | None:
    if employer is None:
        return None
    return EmployerSummary(
        id=employer.id,
        company_name=employer.company_name,
        industry=employer.industry,
        website=employer.website,
        city=employer.city,
        description=employer.description,
    )


def job_summary(job: Job) -> JobSummary:
    return JobSummary(
        id=job.id,
        title=job.title,
        location=job.location,
        remote=job.remote,
        type=job.type,
        salary_min=job.salary_min,
        salary_max=job.salary_max,
        salary_currency=job.salary_currency,
        status=job.status,
        featured=bool(job.featured),
        urgent=bool(job.urgent),
        company_name=job.employer.company_name if job.employer else None,
        skills=job.skill_names,
        published_at=as_utc(job.published_at),
        expires_at=as_utc(job.expires_at),
        created_at=as_utc(job.created_at),
    )


def job_detail(job: Job, *, applications: int = 0) -> JobDetail:
    summary = job_summary(job)
    return JobDetail(
        **summary.model_dump(),
        description=job.description,
        requirements=job.requirements,
        responsibilities=job.responsibilities,
        application_email=job.application_email,
        application_url=job.application_url,
        employer=employer_summary(job.employer),
        application_count=applications,
    )
