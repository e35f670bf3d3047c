# employer_jobs.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.enums import JobStatus
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer
from jobboard.routers.dependencies import get_current_employer
from jobboard.schemas.jobs import JobCreate, JobDetail, JobMutationResponse, JobSummary, JobUpdate
from jobboard.services.audit_service import record_audit
from jobboard.services.job_queries import application_count, job_detail, job_summary
from jobboard.services.skills_service import replace_job_skills
from jobboard.utils.clock import utc_now


router = APIRouter(prefix="/employer/jobs", tags=["employer-jobs"])

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    JobStatus.DRAFT.value: {JobStatus.PUBLISHED.value, JobStatus.CLOSED.value},
    JobStatus.PUBLISHED.value: {JobStatus.PAUSED.value, JobStatus.CLOSED.value, JobStatus.EXPIRED.value},
    JobStatus.PAUSED.value: {JobStatus.PUBLISHED.value, JobStatus.CLOSED.value},
    JobStatus.EXPIRED.value: set(),
    JobStatus.CLOSED.value: set(),
}


def can_transition(current: str, target: str) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS.get(current, set())


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _validate_salary(salary_min, salary_max) -> None:
    if salary_min is None and salary_max is None:
        raise _bad_request("At least one of salaryMin or salaryMax is required")
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise _bad_request("salaryMin cannot be greater than salaryMax")


def _validate_application_method(email, url) -> None:
    if not (email or "").strip() and not (url or "").strip():
        raise _bad_request("Provide an application email or an application URL")


def _owned_job(db: Session, employer: Employer, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id, Job.employer_id == employer.id).first()
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


@router.get("", response_model=list[JobSummary])
def list_my_jobs(
    status_filter: JobStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> list[JobSummary]:
    query = db.query(Job).filter(Job.employer_id == employer.id)
    if status_filter is not None:
        query = query.filter(Job.status == status_filter.value)
    return [job_summary(job) for job in query.order_by(Job.created_at.desc(), Job.id.desc()).all()]


@router.get("/{job_id}", response_model=JobDetail)
def get_my_job(
    job_id: int,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> JobDetail:
    job = _owned_job(db, employer, job_id)
    return job_detail(job, applications=application_count(db, job.id))


@router.post("", response_model=JobMutationResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> JobMutationResponse:
    _validate_salary(payload.salary_min, payload.salary_max)
    if payload.salary_currency.upper() != "EUR":
        raise _bad_request("Only EUR salaries are supported")
    _validate_application_method(payload.application_email, payload.application_url)
    if payload.status not in (JobStatus.DRAFT, JobStatus.PUBLISHED):
        raise _bad_request("New jobs must be DRAFT or PUBLISHED")

    job = Job(
        employer_id=employer.id,
        title=payload.title.strip(),
        description=payload.description,
        requirements=payload.requirements,
        responsibilities=payload.responsibilities,
        location=payload.location.strip(),
        remote=payload.remote.value,
        type=payload.type.value,
        salary_min=payload.salary_min,
        salary_max=payload.salary_max,
        salary_currency="EUR",
        application_email=payload.application_email,
        application_url=payload.application_url,
        status=payload.status.value,
        featured=payload.featured,
        urgent=payload.urgent,
        expires_at=payload.expires_at,
    )
    if job.status == JobStatus.PUBLISHED.value:
        job.published_at = utc_now()
    db.add(job)
    db.flush()
    replace_job_skills(db, job, payload.skills)

    action = "JOB_PUBLISHED" if job.status == JobStatus.PUBLISHED.value else "JOB_CREATED_DRAFT"
    record_audit(db, user_id=employer.user_id, action=action, entity_type="Job", entity_id=job.id,
                 changes={"title": job.title, "status": job.status}, request=request)
    db.commit()
    logger.info("employer_id=%s created job_id=%s status=%s", employer.id, job.id, job.status)

    message = "Job published successfully" if job.status == JobStatus.PUBLISHED.value else "Job saved as draft"
    return JobMutationResponse(message=message, job_id=job.id, status=job.status)


@router.put("/{job_id}", response_model=JobMutationResponse)
def update_job(
    job_id: int,
    payload: JobUpdate,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> JobMutationResponse:
    job = _owned_job(db, employer, job_id)
    changes = payload.model_dump(exclude_unset=True, mode="json")
    skills = changes.pop("skills", None)
    new_status = changes.pop("status", None)

    salary_min = changes.get("salary_min", job.salary_min)
    salary_max = changes.get("salary_max", job.salary_max)
    if "salary_min" in changes or "salary_max" in changes:
        _validate_salary(salary_min, salary_max)
    if "application_email" in changes or "application_url" in changes:
        _validate_application_method(
            changes.get("application_email", job.application_email),
            changes.get("application_url", job.application_url),
        )

    if new_status is not None and not can_transition(job.status, new_status):
        raise _bad_request(f"Cannot change job status from {job.status} to {new_status}")

    for field, value in changes.items():
        if field == "expires_at":
            value = payload.expires_at
        setattr(job, field, value)

    previous_status = job.status
    if new_status is not None and new_status != previous_status:
        job.status = new_status
        if new_status == JobStatus.PUBLISHED.value and job.published_at is None:
            job.published_at = utc_now()
    if skills is not None:
        replace_job_skills(db, job, skills)

    audit_changes = {"fields": sorted(changes)}
    if new_status is not None:
        audit_changes["status"] = {"from": previous_status, "to": job.status}
    record_audit(db, user_id=employer.user_id, action="JOB_UPDATED", entity_type="Job", entity_id=job.id,
                 changes=audit_changes, request=request)
    db.commit()
    return JobMutationResponse(message="Job updated successfully", job_id=job.id, status=job.status)


@router.delete("/{job_id}", response_model=JobMutationResponse)
def delete_job(
    job_id: int,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> JobMutationResponse:
    job = _owned_job(db, employer, job_id)
    record_audit(db, user_id=employer.user_id, action="JOB_DELETED", entity_type="Job", entity_id=job.id,
                 changes={"title": job.title}, request=request)
    status_before = job.status
    db.delete(job)
    db.commit()
    return JobMutationResponse(message="Job deleted successfully", job_id=job_id, status=status_before)
