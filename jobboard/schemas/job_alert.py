from __future__ import annotations

from datetime import datetime

from pydantic import Field

from jobboard.models.enums import AlertFrequency, JobType
from jobboard.schemas.base import CamelModel


class JobAlertCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    location: str | None = None
    industry: str | None = None
    job_type: JobType | None = None
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    email_alerts: bool = True
    sms_alerts: bool = False
    frequency: AlertFrequency = AlertFrequency.DAILY


class JobAlertUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    location: str | None = None
    industry: str | None = None
    job_type: JobType | None = None
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    email_alerts: bool | None = None
    sms_alerts: bool | None = None
    frequency: AlertFrequency | None = None
    active: bool | None = None


class JobAlertRead(CamelModel):
    id: int
    title: str | None = None
    location: str | None = None
    industry: str | None = None
    job_type: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    email_alerts: bool
    sms_alerts: bool
    frequency: str
    active: bool
    created_at: datetime


class AlertProcessDetail(CamelModel):
    alert_id: int
    job_seeker_email: str
    matching_jobs_count: int
    notifications_sent: int


class AlertProcessResponse(CamelModel):
    success: bool
    message: str
    processed: int
    notifications_sent: int
    details: list[AlertProcessDetail] = Field(default_factory=list)
