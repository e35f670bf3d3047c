# saved_jobs.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload

from jobboard.database import get_db
from jobboard.models.applications import SavedJob
from jobboard.models.jobs import Job
from jobboard.models.profiles import JobSeeker
from jobboard.models.skills import JobSkill
from jobboard.routers.dependencies import get_current_job_seeker
from jobboard.schemas.applications import SavedJobCheck, SavedJobRead
from jobboard.services.job_queries import job_summary


router = APIRouter(prefix="/job-seeker/saved-jobs", tags=["saved-jobs"])


def _find_saved(db: Session, seeker: JobSeeker, job_id: int) -> SavedJob | None:
    return (
        db.query(SavedJob)
        .filter(SavedJob.job_seeker_id == seeker.id, SavedJob.job_id == job_id)
        .first()
    )


@router.get("", response_model=list[SavedJobRead])
def list_saved_jobs(db: Session = Depends(get_db), seeker: JobSeeker = Depends(get_current_job_seeker)) -> list[SavedJobRead]:
    saved = (
        db.query(SavedJob)
        .options(
            selectinload(SavedJob.job).selectinload(Job.employer),
            selectinload(SavedJob.job).selectinload(Job.skills).selectinload(JobSkill.skill),
        )
        .filter(SavedJob.job_seeker_id == seeker.id)
        .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        .all()
    )
    return [SavedJobRead(id=item.id, saved_at=item.created_at, job=job_summary(item.job)) for item in saved]


@router.get("/check/{job_id}", response_model=SavedJobCheck)
def check_saved_job(
    job_id: int,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> SavedJobCheck:
    return SavedJobCheck(saved=_find_saved(db, seeker, job_id) is not None)


@router.post("/{job_id}", response_model=SavedJobRead, status_code=status.HTTP_201_CREATED)
def save_job(job_id: int, db: Session = Depends(get_db), seeker: JobSeeker = Depends(get_current_job_seeker)) -> SavedJobRead:
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if _find_saved(db, seeker, job_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Job already saved")
    saved = SavedJob(job_seeker_id=seeker.id, job_id=job.id)
    db.add(saved)
    db.commit()
    db.refresh(saved)
    return SavedJobRead(id=saved.id, saved_at=saved.created_at, job=job_summary(job))


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def unsave_job(job_id: int, db: Session = Depends(get_db), seeker: JobSeeker = Depends(get_current_job_seeker)) -> None:
    saved = _find_saved(db, seeker, job_id)
    if saved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved job not found")
    db.delete(saved)
    db.commit()
