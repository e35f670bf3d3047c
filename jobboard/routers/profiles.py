# profiles.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.skills import JobSeekerSkill
from jobboard.routers.dependencies import get_current_employer, get_current_job_seeker
from jobboard.schemas.profiles import (
    EmployerProfileRead,
    EmployerProfileUpdate,
    JobSeekerProfileRead,
    JobSeekerProfileUpdate,
    SeekerSkillCreate,
    SeekerSkillRead,
    SkillRead,
)
from jobboard.services.audit_service import record_audit
from jobboard.services.skills_service import get_or_create_skill, search_skills


router = APIRouter(tags=["profiles"])


def _seeker_out(seeker: JobSeeker) -> JobSeekerProfileRead:
    return JobSeekerProfileRead(
        id=seeker.id,
        first_name=seeker.first_name,
        last_name=seeker.last_name,
        phone=seeker.phone,
        location=seeker.location,
        country=seeker.country,
        bio=seeker.bio,
        title=seeker.title,
        experience=seeker.experience,
        education=seeker.education,
        cv_url=seeker.cv_url,
        profile_visibility=seeker.profile_visibility,
        skills=seeker.skill_names,
        updated_at=seeker.updated_at,
    )


def _seeker_skill_out(link: JobSeekerSkill) -> SeekerSkillRead:
    return SeekerSkillRead(id=link.id, skill_id=link.skill_id, name=link.skill.name, level=link.level)


@router.get("/job-seeker/profile", response_model=JobSeekerProfileRead)
def read_job_seeker_profile(seeker: JobSeeker = Depends(get_current_job_seeker)) -> JobSeekerProfileRead:
    return _seeker_out(seeker)


@router.put("/job-seeker/profile", response_model=JobSeekerProfileRead)
def update_job_seeker_profile(
    payload: JobSeekerProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> JobSeekerProfileRead:
    changes = payload.model_dump(exclude_unset=True, mode="json")
    for field, value in changes.items():
        setattr(seeker, field, value)
    if {"first_name", "last_name"} & changes.keys():
        seeker.user.name = seeker.full_name
    record_audit(db, user_id=seeker.user_id, action="PROFILE_UPDATED", entity_type="JobSeeker",
                 entity_id=seeker.id, changes={"fields": sorted(changes)}, request=request)
    db.commit()
    db.refresh(seeker)
    return _seeker_out(seeker)


@router.get("/employer/profile", response_model=EmployerProfileRead)
def read_employer_profile(employer: Employer = Depends(get_current_employer)) -> EmployerProfileRead:
    return EmployerProfileRead.model_validate(employer)


@router.put("/employer/profile", response_model=EmployerProfileRead)
def update_employer_profile(
    payload: EmployerProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> EmployerProfileRead:
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(employer, field, value)
    record_audit(db, user_id=employer.user_id, action="PROFILE_UPDATED", entity_type="Employer",
                 entity_id=employer.id, changes={"fields": sorted(changes)}, request=request)
    db.commit()
    db.refresh(employer)
    return EmployerProfileRead.model_validate(employer)


@router.get("/skills", response_model=list[SkillRead])
def list_skills(q: str | None = None, limit: int = 50, db: Session = Depends(get_db)) -> list[SkillRead]:
    limit = max(1, min(limit, 200))
    return [SkillRead.model_validate(skill) for skill in search_skills(db, q, limit)]


@router.get("/job-seeker/skills", response_model=list[SeekerSkillRead])
def list_my_skills(seeker: JobSeeker = Depends(get_current_job_seeker)) -> list[SeekerSkillRead]:
    return [_seeker_skill_out(link) for link in seeker.skills]


@router.post("/job-seeker/skills", response_model=SeekerSkillRead, status_code=status.HTTP_201_CREATED)
def add_my_skill(
    payload: SeekerSkillCreate,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> SeekerSkillRead:
    skill = get_or_create_skill(db, payload.name)
    if any(link.skill_id == skill.id for link in seeker.skills):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Skill already added")
    link = JobSeekerSkill(job_seeker=seeker, skill=skill, level=payload.level)
    db.add(link)
    db.commit()
    db.refresh(link)
    return _seeker_skill_out(link)


@router.delete("/job-seeker/skills/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_my_skill(
    link_id: int,
    db: Session = Depends(get_db),
    seeker: JobSeeker = Depends(get_current_job_seeker),
) -> None:
    link = (
        db.query(JobSeekerSkill)
        .filter(JobSeekerSkill.id == link_id, JobSeekerSkill.job_seeker_id == seeker.id)
        .first()
    )
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Skill not found")
    db.delete(link)
    db.commit()
