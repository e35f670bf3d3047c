# jobs.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.enums import JobStatus, JobType, RemoteType
from jobboard.models.jobs import Job
from jobboard.models.profiles import JobSeeker
from jobboard.routers.dependencies import get_current_job_seeker, get_llm_client
from jobboard.schemas.jobs import JobDetail, JobListResponse, JobSummary
from jobboard.schemas.recommendation import RecommendationResponse
from jobboard.services.job_queries import (
    application_count,
    is_expired,
    job_detail,
    job_summary,
    open_jobs_query,
)
from jobboard.services.recommendation_service import CompletionClient, recommend_jobs


router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=JobListResponse)
def list_jobs(
    q: Optional[str] = None,
    location: Optional[str] = None,
    type: Optional[JobType] = None,
    remote: Optional[RemoteType] = None,
    salary_min: Optional[int] = Query(default=None, ge=0, alias="salaryMin"),
    featured: Optional[bool] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> JobListResponse:
    query = open_jobs_query(db)
    if q and q.strip():
        term = f"%{q.strip()}%"
        query = query.filter(or_(Job.title.ilike(term), Job.description.ilike(term)))
    if location and location.strip():
        query = query.filter(Job.location.ilike(f"%{location.strip()}%"))
    if type is not None:
        query = query.filter(Job.type == type.value)
    if remote is not None:
        query = query.filter(Job.remote == remote.value)
    if salary_min is not None:
        query = query.filter(or_(Job.salary_max.is_(None), Job.salary_max >= salary_min))
    if featured is not None:
        query = query.filter(Job.featured.is_(featured))

    total = query.count()
    jobs = (
        query.order_by(Job.featured.desc(), Job.urgent.desc(), Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return JobListResponse(jobs=[job_summary(job) for job in jobs], total=total, page=page, limit=limit)


# Declared before /{job_id} so "recommendations" is not parsed as an id.
@router.get("/recommendations", response_model=RecommendationResponse, response_model_exclude_none=True)
def job_recommendations(
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
    llm: CompletionClient = Depends(get_llm_client),
) -> RecommendationResponse:
    return recommend_jobs(db, seeker, llm)


def get_open_job_or_error(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None or job.status != JobStatus.PUBLISHED.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if is_expired(job):
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="This job has expired")
    return job


@router.get("/{job_id}", response_model=JobDetail)
def get_job(job_id: int, db: Session = Depends(get_db)) -> JobDetail:
    job = get_open_job_or_error(db, job_id)
    return job_detail(job, applications=application_count(db, job.id))


@router.get("/{job_id}/related", response_model=list[JobSummary])
def related_jobs(job_id: int, limit: int = Query(default=5, ge=1, le=20), db: Session = Depends(get_db)) -> list[JobSummary]:
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    related = (
        open_jobs_query(db)
        .filter(Job.id != job.id)
        .filter(or_(Job.type == job.type, Job.location.ilike(f"%{job.location}%")))
        .order_by(Job.featured.desc(), Job.created_at.desc(), Job.id.desc())
        .limit(limit)
        .all()
    )
    return [job_summary(item) for item in related]
