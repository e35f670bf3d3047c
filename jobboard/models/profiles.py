from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from jobboard.database import Base
from jobboard.models.enums import ProfileVisibility
from jobboard.utils.clock import utc_now


class JobSeeker(Base):
    __tablename__ = "job_seekers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    phone = Column(String(40), nullable=True)
    location = Column(String(255), nullable=False, default="")
    country = Column(String(100), nullable=False, default="Cyprus")
    bio = Column(Text, nullable=True)
    title = Column(String(255), nullable=True)
    experience = Column(Integer, nullable=True)
    education = Column(Text, nullable=True)
    cv_url = Column(String(512), nullable=True)
    profile_visibility = Column(String(32), nullable=False, default=ProfileVisibility.PUBLIC.value)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    user = relationship("User", back_populates="job_seeker")
    skills = relationship("JobSeekerSkill", back_populates="job_seeker", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="job_seeker", cascade="all, delete-orphan")
    saved_jobs = relationship("SavedJob", back_populates="job_seeker", cascade="all, delete-orphan")
    job_alerts = relationship("JobAlert", back_populates="job_seeker", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def skill_names(self) -> list[str]:
        return [link.skill.name for link in self.skills if link.skill is not None]


class Employer(Base):
    __tablename__ = "employers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    company_name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    website = Column(String(512), nullable=True)
    industry = Column(String(255), nullable=True)
    size = Column(String(32), nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(40), nullable=True)
    city = Column(String(120), nullable=True)
    country = Column(String(100), nullable=False, default="Cyprus")
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    user = relationship("User", back_populates="employer")
    jobs = relationship("Job", back_populates="employer", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="employer", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="employer", cascade="all, delete-orphan")
