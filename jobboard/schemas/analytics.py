from __future__ import annotations

from datetime import date

from jobboard.schemas.base import CamelModel


class StatusCount(CamelModel):
    status: str
    count: int


class DayCount(CamelModel):
    date: date
    count: int


class TopJob(CamelModel):
    job_id: int
    title: str
    applications: int


class FunnelCounts(CamelModel):
    applied: int = 0
    viewed: int = 0
    shortlisted: int = 0
    interview: int = 0
    offered: int = 0
    hired: int = 0


class EmployerAnalytics(CamelModel):
    days: int
    total_applications: int
    applications_by_status: list[StatusCount]
    applications_by_day: list[DayCount]
    top_performing_jobs: list[TopJob]
    average_response_time_hours: float | None = None
    conversion_funnel: FunnelCounts


class EmployerStats(CamelModel):
    jobs_by_status: list[StatusCount]
    total_jobs: int
    active_jobs: int
    total_applications: int
    pending_applications: int
