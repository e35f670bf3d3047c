from __future__ import annotations

from datetime import datetime

from pydantic import Field

from jobboard.models.enums import ApplicationStatus
from jobboard.schemas.base import CamelModel
from jobboard.schemas.jobs import JobSummary


class ApplicationCreate(CamelModel):
    cover_letter: str | None = Field(default=None, max_length=10000)
    cv_url: str | None = None


class ApplicationCreated(CamelModel):
    message: str
    application_id: int
    status: str


class ApplicationRead(CamelModel):
    id: int
    job_id: int
    job_title: str
    company_name: str | None = None
    status: str
    cover_letter: str | None = None
    cv_url: str | None = None
    applied_at: datetime
    viewed_at: datetime | None = None


class EmployerApplicationRead(ApplicationRead):
    applicant_name: str
    applicant_email: str | None = None
    applicant_location: str | None = None


class ApplicationStatusUpdate(CamelModel):
    status: ApplicationStatus
    message: str | None = Field(default=None, max_length=2000)


class ApplicationCheck(CamelModel):
    has_applied: bool
    application_id: int | None = None
    status: str | None = None


class SavedJobRead(CamelModel):
    id: int
    saved_at: datetime
    job: JobSummary


class SavedJobCheck(CamelModel):
    saved: bool
