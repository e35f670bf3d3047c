# job_alerts.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.job_alert import JobAlert
from jobboard.models.profiles import JobSeeker
from jobboard.models.user import User
from jobboard.routers.dependencies import (
    get_current_job_seeker,
    get_notification_dispatcher,
    require_admin_or_service,
)
from jobboard.schemas.job_alert import AlertProcessResponse, JobAlertCreate, JobAlertRead, JobAlertUpdate
from jobboard.services.alert_matcher import process_job_alerts
from jobboard.services.audit_service import record_audit
from jobboard.services.notification_dispatcher import NotificationDispatcher


router = APIRouter(tags=["job-alerts"])

logger = logging.getLogger(__name__)


def _owned_alert(db: Session, seeker: JobSeeker, alert_id: int) -> JobAlert:
    alert = db.query(JobAlert).filter(JobAlert.id == alert_id, JobAlert.job_seeker_id == seeker.id).first()
    if alert is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job alert not found")
    return alert


def _validate_salary(salary_min: Optional[int], salary_max: Optional[int]) -> None:
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="salaryMin cannot be greater than salaryMax")


@router.get("/job-seeker/job-alerts", response_model=list[JobAlertRead])
def list_job_alerts(db: Session = Depends(get_db), seeker: JobSeeker = Depends(get_current_job_seeker)) -> list[JobAlertRead]:
    alerts = (
        db.query(JobAlert)
        .filter(JobAlert.job_seeker_id == seeker.id)
        .order_by(JobAlert.created_at.desc(), JobAlert.id.desc())
        .all()
    )
    return [JobAlertRead.model_validate(alert) for alert in alerts]


@router.post("/job-seeker/job-alerts", response_model=JobAlertRead, status_code=status.HTTP_201_CREATED)
def create_job_alert(
    payload: JobAlertCreate,
    request: Request,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> JobAlertRead:
    _validate_salary(payload.salary_min, payload.salary_max)
    values = payload.model_dump(mode="json")
    alert = JobAlert(job_seeker_id=seeker.id, active=True, **values)
    db.add(alert)
    db.flush()
    record_audit(db, user_id=seeker.user_id, action="JOB_ALERT_CREATED", entity_type="JobAlert",
                 entity_id=alert.id, changes=values, request=request)
    db.commit()
    db.refresh(alert)
    return JobAlertRead.model_validate(alert)


@router.put("/job-seeker/job-alerts/{alert_id}", response_model=JobAlertRead)
def update_job_alert(
    alert_id: int,
    payload: JobAlertUpdate,
    request: Request,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> JobAlertRead:
    alert = _owned_alert(db, seeker, alert_id)
    changes = payload.model_dump(exclude_unset=True, mode="json")
    _validate_salary(changes.get("salary_min", alert.salary_min), changes.get("salary_max", alert.salary_max))
    for field, value in changes.items():
        setattr(alert, field, value)
    record_audit(db, user_id=seeker.user_id, action="JOB_ALERT_UPDATED", entity_type="JobAlert",
                 entity_id=alert.id, changes=changes, request=request)
    db.commit()
    db.refresh(alert)
    return JobAlertRead.model_validate(alert)


@router.delete("/job-seeker/job-alerts/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job_alert(
    alert_id: int,
    request: Request,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> None:
    alert = _owned_alert(db, seeker, alert_id)
    record_audit(db, user_id=seeker.user_id, action="JOB_ALERT_DELETED", entity_type="JobAlert",
                 entity_id=alert.id, changes={"title": alert.title}, request=request)
    db.delete(alert)
    db.commit()


@router.post("/job-alerts/process", response_model=AlertProcessResponse)
async def run_job_alerts(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    caller: Optional[User] = Depends(require_admin_or_service),
) -> AlertProcessResponse:
    logger.info("job alert processing triggered by %s", caller.email if caller else "service token")
    try:
        return await process_job_alerts(db, dispatcher)
    except Exception as exc:
        logger.exception("Error processing job alerts")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc
