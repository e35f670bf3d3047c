# applications.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, selectinload

from jobboard.database import get_db
from jobboard.models.applications import Application
from jobboard.models.enums import ApplicationStatus, UserRole
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.user import User
from jobboard.routers.dependencies import get_current_employer, get_current_job_seeker, get_current_user
from jobboard.routers.jobs import get_open_job_or_error
from jobboard.schemas.applications import (
    ApplicationCheck,
    ApplicationCreate,
    ApplicationCreated,
    ApplicationRead,
    ApplicationStatusUpdate,
    EmployerApplicationRead,
)
from jobboard.services.audit_service import record_audit
from jobboard.services.notification_service import Recipient, notify
from jobboard.utils.clock import isoformat, utc_now


router = APIRouter(tags=["applications"])

logger = logging.getLogger(__name__)

EMPLOYER_SETTABLE = {
    ApplicationStatus.VIEWED,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFERED,
    ApplicationStatus.HIRED,
    ApplicationStatus.REJECTED,
}


def _application_out(app: Application) -> ApplicationRead:
    job = app.job
    return ApplicationRead(
        id=app.id,
        job_id=app.job_id,
        job_title=job.title if job else "",
        company_name=job.employer.company_name if job and job.employer else None,
        status=app.status,
        cover_letter=app.cover_letter,
        cv_url=app.cv_url,
        applied_at=app.applied_at,
        viewed_at=app.viewed_at,
    )


def _employer_application_out(app: Application) -> EmployerApplicationRead:
    seeker = app.job_seeker
    base = _application_out(app)
    return EmployerApplicationRead(
        **base.model_dump(),
        applicant_name=seeker.full_name if seeker else "",
        applicant_email=seeker.user.email if seeker and seeker.user else None,
        applicant_location=seeker.location if seeker else None,
    )


def _notify_safely(recipient: Recipient, template: str, data: dict) -> None:
    # Notifications never fail the request that triggered them.
    try:
        notify(recipient, template, data)
    except Exception:
        logger.exception("notification %s failed for user_id=%s", template, recipient.user_id)


@router.post("/jobs/{job_id}/apply", response_model=ApplicationCreated, status_code=status.HTTP_201_CREATED)
def apply_to_job(
    job_id: int,
    payload: ApplicationCreate,
    request: Request,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> ApplicationCreated:
    job = get_open_job_or_error(db, job_id)
    existing = (
        db.query(Application)
        .filter(Application.job_id == job.id, Application.job_seeker_id == seeker.id)
        .first()
    )
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already applied to this job")

    application = Application(
        job_id=job.id,
        job_seeker_id=seeker.id,
        status=ApplicationStatus.APPLIED.value,
        cover_letter=payload.cover_letter,
        cv_url=payload.cv_url or seeker.cv_url,
    )
    db.add(application)
    db.flush()
    record_audit(db, user_id=seeker.user_id, action="JOB_APPLICATION_SUBMITTED", entity_type="Application",
                 entity_id=application.id, changes={"jobId": job.id, "jobTitle": job.title}, request=request)
    db.commit()
    db.refresh(application)

    employer = job.employer
    if employer is not None and employer.user is not None:
        _notify_safely(
            Recipient(
                user_id=employer.user_id,
                email=employer.contact_email or employer.user.email,
                name=employer.contact_name or employer.company_name,
            ),
            "NEW_APPLICATION",
            {
                "jobTitle": job.title,
                "applicantName": seeker.full_name,
                "appliedAt": isoformat(application.applied_at),
                "applicantBio": seeker.bio,
            },
        )

    return ApplicationCreated(
        message="Application submitted successfully",
        application_id=application.id,
        status=application.status,
    )


@router.get("/job-seeker/applications", response_model=list[ApplicationRead])
def list_my_applications(
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> list[ApplicationRead]:
    applications = (
        db.query(Application)
        .options(selectinload(Application.job).selectinload(Job.employer))
        .filter(Application.job_seeker_id == seeker.id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )
    return [_application_out(app) for app in applications]


@router.get("/job-seeker/applications/check/{job_id}", response_model=ApplicationCheck)
def check_application(
    job_id: int,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> ApplicationCheck:
    app = (
        db.query(Application)
        .filter(Application.job_id == job_id, Application.job_seeker_id == seeker.id)
        .first()
    )
    if app is None:
        return ApplicationCheck(has_applied=False)
    return ApplicationCheck(has_applied=True, application_id=app.id, status=app.status)


@router.get("/employer/applications", response_model=list[EmployerApplicationRead])
def list_employer_applications(
    job_id: Optional[int] = Query(default=None, alias="jobId"),
    status_filter: Optional[ApplicationStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> list[EmployerApplicationRead]:
    query = (
        db.query(Application)
        .join(Job, Job.id == Application.job_id)
        .options(
            selectinload(Application.job).selectinload(Job.employer),
            selectinload(Application.job_seeker).selectinload(JobSeeker.user),
        )
        .filter(Job.employer_id == employer.id)
    )
    if job_id is not None:
        query = query.filter(Application.job_id == job_id)
    if status_filter is not None:
        query = query.filter(Application.status == status_filter.value)
    applications = query.order_by(Application.applied_at.desc(), Application.id.desc()).all()
    return [_employer_application_out(app) for app in applications]


@router.patch("/applications/{application_id}/status", response_model=ApplicationRead)
def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApplicationRead:
    application = db.query(Application).filter(Application.id == application_id).first()
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")

    job = application.job
    seeker = application.job_seeker
    if current_user.role == UserRole.EMPLOYER.value:
        if job is None or job.employer is None or job.employer.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
        if payload.status not in EMPLOYER_SETTABLE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status for employer")
    elif current_user.role == UserRole.JOB_SEEKER.value:
        if seeker is None or seeker.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
        if payload.status != ApplicationStatus.WITHDRAWN:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job seekers can only withdraw")
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")

    previous = application.status
    application.status = payload.status.value
    if payload.status == ApplicationStatus.VIEWED and application.viewed_at is None:
        application.viewed_at = utc_now()
    record_audit(db, user_id=current_user.id, action="APPLICATION_STATUS_UPDATED", entity_type="Application",
                 entity_id=application.id, changes={"from": previous, "to": application.status}, request=request)
    db.commit()
    db.refresh(application)

    if current_user.role == UserRole.EMPLOYER.value and seeker is not None and seeker.user is not None:
        _notify_safely(
            Recipient(
                user_id=seeker.user_id,
                email=seeker.user.email,
                name=seeker.first_name,
                phone=seeker.phone,
            ),
            "APPLICATION_UPDATE",
            {
                "jobTitle": job.title,
                "companyName": job.employer.company_name,
                "status": application.status,
                "message": payload.message,
                "applicationId": application.id,
            },
        )

    return _application_out(application)
