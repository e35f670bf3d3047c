# directory.py
import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer
from jobboard.models.user import User
from jobboard.schemas.directory import (
    CompanyFilters,
    CompanyJobPreview,
    CompanyListResponse,
    CompanyRead,
    PlatformStats,
)
from jobboard.services.analytics_service import platform_stats
from jobboard.services.job_queries import open_job_criteria


router = APIRouter(tags=["directory"])

RECENT_JOBS_PER_COMPANY = 3


def _recent_jobs(db: Session, employer_ids: list[int], open_job: tuple) -> dict[int, list[CompanyJobPreview]]:
    previews: dict[int, list[CompanyJobPreview]] = {employer_id: [] for employer_id in employer_ids}
    if not employer_ids:
        return previews
    jobs = (
        db.query(Job)
        .filter(Job.employer_id.in_(employer_ids), *open_job)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .all()
    )
    for job in jobs:
        bucket = previews[job.employer_id]
        if len(bucket) < RECENT_JOBS_PER_COMPANY:
            bucket.append(CompanyJobPreview(id=job.id, title=job.title, location=job.location, created_at=job.created_at))
    return previews


def _filter_values(db: Session, open_job: tuple) -> CompanyFilters:
    industries = (
        db.query(Employer.industry)
        .filter(Employer.industry.isnot(None), Employer.industry != "")
        .distinct()
        .order_by(Employer.industry)
        .all()
    )
    locations = db.query(Job.location).filter(*open_job).distinct().order_by(Job.location).all()
    return CompanyFilters(
        industries=[row[0] for row in industries],
        locations=[row[0] for row in locations if row[0]],
    )


@router.get("/companies", response_model=CompanyListResponse)
def list_companies(
    search: Optional[str] = None,
    industry: Optional[str] = None,
    location: Optional[str] = None,
    sort_by: Literal["date", "name", "jobs"] = Query(default="date", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=50),
    db: Session = Depends(get_db),
) -> CompanyListResponse:
    open_job = open_job_criteria()
    active_counts = (
        db.query(Job.employer_id.label("employer_id"), func.count(Job.id).label("active_jobs"))
        .filter(*open_job)
        .group_by(Job.employer_id)
        .subquery()
    )
    active_jobs = func.coalesce(active_counts.c.active_jobs, 0)

    query = (
        db.query(Employer, active_jobs)
        .join(User, User.id == Employer.user_id)
        .outerjoin(active_counts, active_counts.c.employer_id == Employer.id)
        .filter(User.deleted_at.is_(None))
    )
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(Employer.company_name.ilike(term), Employer.description.ilike(term), Employer.industry.ilike(term))
        )
    if industry and industry.strip():
        query = query.filter(Employer.industry.ilike(f"%{industry.strip()}%"))
    if location and location.strip():
        hiring_there = select(Job.employer_id).where(*open_job, Job.location.ilike(f"%{location.strip()}%"))
        query = query.filter(Employer.id.in_(hiring_there))

    sort_column = {"date": Employer.created_at, "name": Employer.company_name, "jobs": active_jobs}[sort_by]
    if sort_order == "asc":
        query = query.order_by(sort_column.asc(), Employer.id.asc())
    else:
        query = query.order_by(sort_column.desc(), Employer.id.desc())

    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    previews = _recent_jobs(db, [employer.id for employer, _ in rows], open_job)

    companies = [
        CompanyRead(
            id=employer.id,
            company_name=employer.company_name,
            description=employer.description,
            industry=employer.industry,
            website=employer.website,
            location=employer.city or employer.country,
            size=employer.size,
            created_at=employer.created_at,
            active_jobs=int(count),
            recent_jobs=previews[employer.id],
        )
        for employer, count in rows
    ]
    return CompanyListResponse(
        companies=companies,
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
        filters=_filter_values(db, open_job),
    )


@router.get("/stats", response_model=PlatformStats)
def get_platform_stats(db: Session = Depends(get_db)) -> PlatformStats:
    return platform_stats(db)
