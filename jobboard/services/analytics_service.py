# analytics_service.py
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobboard.models.applications import Application
from jobboard.models.enums import ApplicationStatus, JobStatus
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.user import User
from jobboard.schemas.analytics import (
    DayCount,
    EmployerAnalytics,
    EmployerStats,
    FunnelCounts,
    StatusCount,
    TopJob,
)
from jobboard.schemas.directory import (
    JobTypeCount,
    LocationCount,
    PlatformActivity,
    PlatformDistribution,
    PlatformFeatured,
    PlatformOverview,
    PlatformStats,
)
from jobboard.services.job_queries import open_job_criteria
from jobboard.utils.clock import as_utc, utc_now


# Each funnel stage counts applications that reached it or any later stage.
_FUNNEL_ORDER = [
    ApplicationStatus.APPLIED.value,
    ApplicationStatus.VIEWED.value,
    ApplicationStatus.SHORTLISTED.value,
    ApplicationStatus.INTERVIEW.value,
    ApplicationStatus.OFFERED.value,
    ApplicationStatus.HIRED.value,
]


def _funnel(statuses: Counter) -> FunnelCounts:
    counts: dict[str, int] = {}
    for index, stage in enumerate(_FUNNEL_ORDER):
        counts[stage.lower()] = sum(statuses.get(s, 0) for s in _FUNNEL_ORDER[index:])
    # Rejected and withdrawn applications were still received.
    counts["applied"] += statuses.get(ApplicationStatus.REJECTED.value, 0)
    counts["applied"] += statuses.get(ApplicationStatus.WITHDRAWN.value, 0)
    return FunnelCounts(**counts)


def employer_analytics(
    db: Session,
    employer_id: int,
    *,
    days: int = 30,
    job_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> EmployerAnalytics:
    now = now or utc_now()
    since = now - timedelta(days=days)

    query = (
        db.query(Application)
        .join(Job, Job.id == Application.job_id)
        .filter(Job.employer_id == employer_id, Application.applied_at >= since)
    )
    if job_id is not None:
        query = query.filter(Application.job_id == job_id)
    applications = query.all()

    statuses = Counter(app.status for app in applications)
    by_day = Counter(as_utc(app.applied_at).date() for app in applications)
    per_job = Counter(app.job_id for app in applications)

    titles = dict(
        db.query(Job.id, Job.title).filter(Job.id.in_(list(per_job.keys()))).all()
    ) if per_job else {}
    top_jobs = [
        TopJob(job_id=jid, title=titles.get(jid, ""), applications=count)
        for jid, count in sorted(per_job.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
    ]

    response_hours = [
        (as_utc(app.viewed_at) - as_utc(app.applied_at)).total_seconds() / 3600
        for app in applications
        if app.viewed_at is not None
    ]
    average = round(sum(response_hours) / len(response_hours), 2) if response_hours else None

    return EmployerAnalytics(
        days=days,
        total_applications=len(applications),
        applications_by_status=[StatusCount(status=s, count=c) for s, c in sorted(statuses.items())],
        applications_by_day=[DayCount(date=d, count=c) for d, c in sorted(by_day.items())],
        top_performing_jobs=top_jobs,
        average_response_time_hours=average,
        conversion_funnel=_funnel(statuses),
    )


def employer_stats(db: Session, employer_id: int) -> EmployerStats:
    rows = (
        db.query(Job.status, func.count(Job.id))
        .filter(Job.employer_id == employer_id)
        .group_by(Job.status)
        .all()
    )
    by_status = {status: int(count) for status, count in rows}

    applications = (
        db.query(Application.status, func.count(Application.id))
        .join(Job, Job.id == Application.job_id)
        .filter(Job.employer_id == employer_id)
        .group_by(Application.status)
        .all()
    )
    app_counts = {status: int(count) for status, count in applications}

    return EmployerStats(
        jobs_by_status=[StatusCount(status=s, count=c) for s, c in sorted(by_status.items())],
        total_jobs=sum(by_status.values()),
        active_jobs=by_status.get(JobStatus.PUBLISHED.value, 0),
        total_applications=sum(app_counts.values()),
        pending_applications=app_counts.get(ApplicationStatus.APPLIED.value, 0),
    )


def _count(query) -> int:
    return int(query.scalar() or 0)


def platform_stats(db: Session, *, now: Optional[datetime] = None) -> PlatformStats:
    """Public headline numbers for the landing page."""
    now = now or utc_now()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    open_job = open_job_criteria(now)

    active_jobs = _count(db.query(func.count(Job.id)).filter(*open_job))
    recent_applications = _count(db.query(func.count(Application.id)).filter(Application.applied_at >= month_ago))

    type_rows = (
        db.query(Job.type, func.count(Job.id).label("c"))
        .filter(*open_job)
        .group_by(Job.type)
        .order_by(func.count(Job.id).desc(), Job.type)
        .all()
    )
    location_rows = (
        db.query(Job.location, func.count(Job.id).label("c"))
        .filter(*open_job)
        .group_by(Job.location)
        .order_by(func.count(Job.id).desc(), Job.location)
        .limit(5)
        .all()
    )

    return PlatformStats(
        overview=PlatformOverview(
            total_jobs=_count(db.query(func.count(Job.id))),
            active_jobs=active_jobs,
            total_companies=_count(
                db.query(func.count(Employer.id)).join(User, User.id == Employer.user_id).filter(User.deleted_at.is_(None))
            ),
            total_job_seekers=_count(
                db.query(func.count(JobSeeker.id)).join(User, User.id == JobSeeker.user_id).filter(User.deleted_at.is_(None))
            ),
            success_rate=round(recent_applications / active_jobs * 100) if active_jobs else 0,
        ),
        featured=PlatformFeatured(
            featured_jobs=_count(db.query(func.count(Job.id)).filter(*open_job, Job.featured.is_(True))),
            urgent_jobs=_count(db.query(func.count(Job.id)).filter(*open_job, Job.urgent.is_(True))),
        ),
        activity=PlatformActivity(
            recent_applications=recent_applications,
            new_jobs_this_week=_count(
                db.query(func.count(Job.id)).filter(Job.created_at >= week_ago, Job.status == JobStatus.PUBLISHED.value)
            ),
            new_companies_this_week=_count(db.query(func.count(Employer.id)).filter(Employer.created_at >= week_ago)),
            new_applications_this_week=_count(
                db.query(func.count(Application.id)).filter(Application.applied_at >= week_ago)
            ),
        ),
        distribution=PlatformDistribution(
            jobs_by_type=[JobTypeCount(type=job_type, count=int(count)) for job_type, count in type_rows],
            top_locations=[LocationCount(location=location, count=int(count)) for location, count in location_rows],
        ),
    )
