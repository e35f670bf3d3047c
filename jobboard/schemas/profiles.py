from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from jobboard.models.enums import ProfileVisibility
from jobboard.schemas.base import CamelModel


class JobSeekerProfileRead(CamelModel):
    id: int
    first_name: str
    last_name: str
    phone: str | None = None
    location: str
    country: str
    bio: str | None = None
    title: str | None = None
    experience: int | None = None
    education: str | None = None
    cv_url: str | None = None
    profile_visibility: str
    skills: list[str] = Field(default_factory=list)
    updated_at: datetime


class JobSeekerProfileUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    location: str | None = None
    country: str | None = None
    bio: str | None = None
    title: str | None = None
    experience: int | None = Field(default=None, ge=0, le=60)
    education: str | None = None
    cv_url: str | None = None
    profile_visibility: ProfileVisibility | None = None


class EmployerProfileRead(CamelModel):
    id: int
    company_name: str
    description: str | None = None
    website: str | None = None
    industry: str | None = None
    size: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    city: str | None = None
    country: str
    updated_at: datetime


class EmployerProfileUpdate(CamelModel):
    company_name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    website: str | None = None
    industry: str | None = None
    size: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    city: str | None = None
    country: str | None = None


class SkillRead(CamelModel):
    id: int
    name: str
    category: str | None = None


class SeekerSkillCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    level: int = Field(default=3, ge=1, le=5)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        value = (v or "").strip()
        if not value:
            raise ValueError("skill name must not be blank")
        return value


class SeekerSkillRead(CamelModel):
    id: int
    skill_id: int
    name: str
    level: int
