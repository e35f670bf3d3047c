# analytics.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer
from jobboard.routers.dependencies import get_current_employer
from jobboard.schemas.analytics import EmployerAnalytics, EmployerStats
from jobboard.services.analytics_service import employer_analytics, employer_stats


router = APIRouter(prefix="/employer", tags=["analytics"])


@router.get("/analytics", response_model=EmployerAnalytics)
def read_employer_analytics(
    days: int = Query(default=30, ge=1, le=365),
    job_id: Optional[int] = Query(default=None, alias="jobId"),
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> EmployerAnalytics:
    if job_id is not None:
        owned = db.query(Job.id).filter(Job.id == job_id, Job.employer_id == employer.id).first()
        if owned is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return employer_analytics(db, employer.id, days=days, job_id=job_id)


@router.get("/stats", response_model=EmployerStats)
def read_employer_stats(
    db: Session = Depends(get_db), employer: Employer = Depends(get_current_employer)
) -> EmployerStats:
    return employer_stats(db, employer.id)
