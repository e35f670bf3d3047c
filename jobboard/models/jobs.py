# jobs.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from jobboard.database import Base
from jobboard.models.enums import JobStatus, RemoteType
from jobboard.utils.clock import utc_now


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(Integer, ForeignKey("employers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=True)
    responsibilities = Column(Text, nullable=True)
    location = Column(String(255), nullable=False)
    remote = Column(String(16), nullable=False, default=RemoteType.ONSITE.value)
    type = Column(String(32), nullable=False, index=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String(3), nullable=False, default="EUR")
    application_email = Column(String(255), nullable=True)
    application_url = Column(String(512), nullable=True)
    status = Column(String(16), nullable=False, default=JobStatus.DRAFT.value, index=True)
    featured = Column(Boolean, nullable=False, default=False)
    urgent = Column(Boolean, nullable=False, default=False)

    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    employer = relationship("Employer", back_populates="jobs")
    skills = relationship("JobSkill", back_populates="job", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")

    @property
    def skill_names(self) -> list[str]:
        return [link.skill.name for link in self.skills if link.skill is not None]
