from __future__ import annotations

from datetime import datetime

from pydantic import Field

from jobboard.schemas.base import CamelModel


class CompanyJobPreview(CamelModel):
    id: int
    title: str
    location: str
    created_at: datetime


class CompanyRead(CamelModel):
    id: int
    company_name: str
    description: str | None = None
    industry: str | None = None
    website: str | None = None
    location: str | None = None
    size: str | None = None
    created_at: datetime
    active_jobs: int = 0
    recent_jobs: list[CompanyJobPreview] = Field(default_factory=list)


class CompanyFilters(CamelModel):
    industries: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)


class CompanyListResponse(CamelModel):
    companies: list[CompanyRead]
    total: int
    page: int
    limit: int
    total_pages: int
    filters: CompanyFilters


class PlatformOverview(CamelModel):
    total_jobs: int
    active_jobs: int
    total_companies: int
    total_job_seekers: int
    success_rate: int


class PlatformFeatured(CamelModel):
    featured_jobs: int
    urgent_jobs: int


class PlatformActivity(CamelModel):
    recent_applications: int
    new_jobs_this_week: int
    new_companies_this_week: int
    new_applications_this_week: int


class JobTypeCount(CamelModel):
    type: str
    count: int


class LocationCount(CamelModel):
    location: str
    count: int


class PlatformDistribution(CamelModel):
    jobs_by_type: list[JobTypeCount]
    top_locations: list[LocationCount]


class PlatformStats(CamelModel):
    overview: PlatformOverview
    featured: PlatformFeatured
    activity: PlatformActivity
    distribution: PlatformDistribution
