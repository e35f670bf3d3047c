# recommendation.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from jobboard.schemas.base import CamelModel
from jobboard.schemas.jobs import JobSummary


class JobRecommendation(CamelModel):
    job_id: int
    relevance_score: float = Field(ge=0, le=100)
    match_reasons: list[str] = Field(default_factory=list)
    skill_match: Optional[str] = None
    experience_match: Optional[str] = None
    location_match: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    job: JobSummary


class RecommendationResponse(CamelModel):
    recommendations: list[JobRecommendation] = Field(default_factory=list)
    insights: Optional[str] = None
    message: Optional[str] = None
    fallback: bool = False
    generated_at: Optional[datetime] = None
