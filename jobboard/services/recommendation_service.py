# recommendation_service.py
import json
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from jobboard.config import Settings
from jobboard.models.applications import Application
from jobboard.models.enums import ACTIVE_APPLICATION_STATUSES, RemoteType
from jobboard.models.jobs import Job
from jobboard.models.profiles import JobSeeker
from jobboard.schemas.recommendation import JobRecommendation, RecommendationResponse
from jobboard.services.job_queries import job_summary, recommendation_candidates
from jobboard.services.skills_service import substring_overlap
from jobboard.utils.clock import utc_now


logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10
NO_JOBS_MESSAGE = "No new jobs available for recommendation"
FALLBACK_INSIGHTS = "AI service temporarily unavailable. Showing basic matches based on skills and location."
FALLBACK_SUGGESTIONS = [
    "Highlight relevant skills in your application",
    "Research the company culture before applying",
    "Customize your resume for this position",
]

SYSTEM_PROMPT = (
    "You are an expert job matching assistant that provides personalized career recommendations "
    "based on detailed analysis of job seeker profiles and job requirements."
)


class RecommendationUnavailable(Exception):
    """The LLM could not produce usable recommendations."""


class CompletionClient(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


class LLMRecommender:
    """Chat-completion client for the configured OpenAI-compatible endpoint."""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.llm_api_key:
                raise RecommendationUnavailable("LLM_API_KEY is not configured")
            self._client = OpenAI(api_key=self.settings.llm_api_key, base_url=self.settings.llm_base_url)
        return self._client

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except OpenAIError as exc:
            raise RecommendationUnavailable(str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RecommendationUnavailable("No response from AI service")
        return content


@dataclass(frozen=True)
class SeekerProfile:
    name: str
    title: str
    experience: int
    location: str
    bio: str
    skills: tuple[str, ...]
    education: str

    @classmethod
    def from_seeker(cls, seeker: JobSeeker) -> "SeekerProfile":
        return cls(
            name=seeker.full_name,
            title=seeker.title or "",
            experience=seeker.experience or 0,
            location=seeker.location or "",
            bio=seeker.bio or "",
            skills=tuple(seeker.skill_names),
            education=seeker.education or "",
        )


class _LLMItem(BaseModel):
    jobId: int
    relevanceScore: float = Field(ge=0, le=100)
    matchReasons: list[str] = Field(default_factory=list)
    skillMatch: Optional[str] = None
    experienceMatch: Optional[str] = None
    locationMatch: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)


class _LLMPayload(BaseModel):
    recommendations: list[_LLMItem] = Field(default_factory=list)
    insights: Optional[str] = None


def score_job(profile: SeekerProfile, job: Job) -> JobRecommendation:
    """Heuristic relevance score used when the LLM is unavailable."""
    score = 0
    reasons: list[str] = []

    skill_matches = substring_overlap(profile.skills, job.skill_names)
    if skill_matches:
        score += min(40, len(skill_matches) * 10)
        reasons.append(f"Skills match: {', '.join(skill_matches)}")

    user_location = profile.location.strip().lower()
    job_location = (job.location or "").lower()
    if user_location and (user_location in job_location or job_location in user_location):
        score += 30
        reasons.append("Location match")
    elif job.remote == RemoteType.REMOTE.value:
        score += 20
        reasons.append("Remote work opportunity")

    title = (job.title or "").lower()
    if profile.experience >= 3 and "senior" in title:
        score += 20
        reasons.append("Experience level matches senior position")
    elif profile.experience < 3 and "junior" in title:
        score += 20
        reasons.append("Experience level matches entry position")

    if job.featured:
        score += 5
    if job.urgent:
        score += 5

    return JobRecommendation(
        job_id=job.id,
        relevance_score=min(100, score),
        match_reasons=reasons,
        skill_match=", ".join(skill_matches) or "No direct skill match",
        experience_match=f"{profile.experience} years experience",
        location_match=job.location,
        suggestions=list(FALLBACK_SUGGESTIONS),
        job=job_summary(job),
    )


def fallback_recommendations(profile: SeekerProfile, jobs: Iterable[Job]) -> list[JobRecommendation]:
    scored = [score_job(profile, job) for job in jobs]
    # sorted() is stable: equal scores keep the candidate order.
    scored = sorted(scored, key=lambda rec: rec.relevance_score, reverse=True)
    return scored[:MAX_RECOMMENDATIONS]


def build_prompt(profile: SeekerProfile, jobs: list[Job]) -> str:
    jobs_data = [
        {
            "id": job.id,
            "title": job.title,
            "company": job.employer.company_name if job.employer else None,
            "location": job.location,
            "type": job.type,
            "remote": job.remote,
            "salaryMin": job.salary_min,
            "salaryMax": job.salary_max,
            "description": job.description,
            "requirements": job.requirements or "",
            "skills": ", ".join(job.skill_names),
            "featured": bool(job.featured),
            "urgent": bool(job.urgent),
        }
        for job in jobs
    ]
    return f"""Based on the job seeker's profile and the available job listings, provide personalized job recommendations.

Job Seeker Profile:
- Name: {profile.name}
- Current Title: {profile.title}
- Experience: {profile.experience} years
- Location: {profile.location}
- Skills: {", ".join(profile.skills)}
- Education: {profile.education}
- Bio: {profile.bio}

Available Jobs (JSON):
{json.dumps(jobs_data, indent=2)}

Score every job from 0 to 100, explain why it matches or not, and recommend the most suitable ones.

Return ONLY valid JSON in this format:
{{
  "recommendations": [
    {{
      "jobId": 123,
      "relevanceScore": 85,
      "matchReasons": ["Reason 1", "Reason 2"],
      "skillMatch": "Specific skills that match",
      "experienceMatch": "How experience level matches",
      "locationMatch": "Location compatibility analysis",
      "suggestions": ["Application suggestion 1"]
    }}
  ],
  "insights": "Overall career insights and advice for the job seeker"
}}"""


def _strip_code_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_llm_recommendations(content: str, jobs: list[Job]) -> tuple[list[JobRecommendation], Optional[str]]:
    try:
        payload = _LLMPayload.model_validate(json.loads(_strip_code_fence(content)))
    except (ValueError, ValidationError) as exc:
        raise RecommendationUnavailable(f"Unparseable AI response: {exc}") from exc

    by_id = {job.id: job for job in jobs}
    recommendations: list[JobRecommendation] = []
    for item in payload.recommendations:
        job = by_id.get(item.jobId)
        if job is None:
            continue
        recommendations.append(
            JobRecommendation(
                job_id=job.id,
                relevance_score=item.relevanceScore,
                match_reasons=item.matchReasons,
                skill_match=item.skillMatch,
                experience_match=item.experienceMatch,
                location_match=item.locationMatch,
                suggestions=item.suggestions,
                job=job_summary(job),
            )
        )
    return recommendations[:MAX_RECOMMENDATIONS], payload.insights


def applied_job_ids(db: Session, seeker_id: int) -> set[int]:
    rows = (
        db.query(Application.job_id)
        .filter(Application.job_seeker_id == seeker_id)
        .filter(Application.status.in_(ACTIVE_APPLICATION_STATUSES))
        .all()
    )
    return {row[0] for row in rows}


def recommend_jobs(db: Session, seeker: JobSeeker, llm: CompletionClient) -> RecommendationResponse:
    jobs = recommendation_candidates(db, exclude_job_ids=applied_job_ids(db, seeker.id))
    if not jobs:
        return RecommendationResponse(recommendations=[], message=NO_JOBS_MESSAGE)

    profile = SeekerProfile.from_seeker(seeker)
    try:
        content = llm.complete(SYSTEM_PROMPT, build_prompt(profile, jobs))
        recommendations, insights = parse_llm_recommendations(content, jobs)
    except RecommendationUnavailable as exc:
        logger.warning("AI recommendations unavailable for seeker_id=%s: %s", seeker.id, exc)
        return RecommendationResponse(
            recommendations=fallback_recommendations(profile, jobs),
            insights=FALLBACK_INSIGHTS,
            fallback=True,
            generated_at=utc_now(),
        )

    return RecommendationResponse(recommendations=recommendations, insights=insights, generated_at=utc_now())
