from __future__ import annotations

from datetime import datetime, timezone

from pydantic import AwareDatetime, Field, field_validator

from jobboard.models.enums import JobStatus, JobType, RemoteType
from jobboard.schemas.base import CamelModel


def _to_utc(value: datetime | None) -> datetime | None:
    # DateTime columns keep only the wall-clock part, so expiry is stored in UTC.
    return value.astimezone(timezone.utc) if value is not None else None


class EmployerSummary(CamelModel):
    id: int
    company_name: str
    industry: str | None = None
    website: str | None = None
    city: str | None = None
    description: str | None = None


class JobBase(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    requirements: str | None = None
    responsibilities: str | None = None
    location: str = Field(min_length=1, max_length=255)
    remote: RemoteType = RemoteType.ONSITE
    type: JobType
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    salary_currency: str = "EUR"
    application_email: str | None = None
    application_url: str | None = None
    expires_at: AwareDatetime | None = None
    featured: bool = False
    urgent: bool = False

    @field_validator("expires_at")
    @classmethod
    def _expiry_in_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class JobCreate(JobBase):
    status: JobStatus = JobStatus.DRAFT
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def _clean_skills(cls, v: list[str]) -> list[str]:
        cleaned: list[str] = []
        seen: set[str] = set()
        for name in v or []:
            value = (name or "").strip()
            if value and value.lower() not in seen:
                seen.add(value.lower())
                cleaned.append(value)
        return cleaned


class JobUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    requirements: str | None = None
    responsibilities: str | None = None
    location: str | None = None
    remote: RemoteType | None = None
    type: JobType | None = None
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    application_email: str | None = None
    application_url: str | None = None
    expires_at: AwareDatetime | None = None
    featured: bool | None = None
    urgent: bool | None = None
    status: JobStatus | None = None
    skills: list[str] | None = None

    @field_validator("expires_at")
    @classmethod
    def _expiry_in_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class JobSummary(CamelModel):
    id: int
    title: str
    location: str
    remote: str
    type: str
    salary_min: int | None = None
    salary_max: int | None = None
    salary_currency: str
    status: str
    featured: bool
    urgent: bool
    company_name: str | None = None
    skills: list[str] = Field(default_factory=list)
    published_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime


class JobDetail(JobSummary):
    description: str
    requirements: str | None = None
    responsibilities: str | None = None
    application_email: str | None = None
    application_url: str | None = None
    employer: EmployerSummary | None = None
    application_count: int = 0


class JobListResponse(CamelModel):
    jobs: list[JobSummary]
    total: int
    page: int
    limit: int


class JobMutationResponse(CamelModel):
    message: str
    job_id: int
    status: str
