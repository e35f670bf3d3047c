# skills_service.py
from typing import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobboard.models.jobs import Job
from jobboard.models.skills import JobSkill, Skill


def normalize_skill_name(value: str) -> str:
    return " ".join((value or "").split())


def get_or_create_skill(db: Session, name: str) -> Skill:
    normalized = normalize_skill_name(name)
    # Case-insensitive lookup so "python" and "Python" share one row.
    skill = db.query(Skill).filter(func.lower(Skill.name) == normalized.lower()).first()
    if skill is None:
        skill = Skill(name=normalized)
        db.add(skill)
        db.flush()
    return skill


def replace_job_skills(db: Session, job: Job, names: Iterable[str]) -> None:
    job.skills.clear()
    db.flush()
    seen: set[int] = set()
    for name in names:
        if not normalize_skill_name(name):
            continue
        skill = get_or_create_skill(db, name)
        if skill.id in seen:
            continue
        seen.add(skill.id)
        job.skills.append(JobSkill(skill=skill))


def search_skills(db: Session, q: str | None, limit: int = 50) -> Sequence[Skill]:
    query = db.query(Skill)
    term = (q or "").strip().lower()
    if term:
        query = query.filter(func.lower(Skill.name).contains(term))
    return query.order_by(Skill.name.asc()).limit(limit).all()


def substring_overlap(first: Iterable[str], second: Iterable[str]) -> list[str]:
    """Names from `first` that contain, or are contained in, any name from `second`.

    Comparison is case-insensitive; the returned names are lowercased.
    """
    others = [s.strip().lower() for s in second if s and s.strip()]
    matches: list[str] = []
    for raw in first:
        name = (raw or "").strip().lower()
        if not name:
            continue
        if any(other in name or name in other for other in others):
            matches.append(name)
    return matches
