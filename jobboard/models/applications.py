from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.database import Base
from jobboard.models.enums import ApplicationStatus
from jobboard.utils.clock import utc_now


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_seeker_id = Column(Integer, ForeignKey("job_seekers.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=ApplicationStatus.APPLIED.value, index=True)
    cover_letter = Column(Text, nullable=True)
    cv_url = Column(String(512), nullable=True)

    applied_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    viewed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    job_seeker = relationship("JobSeeker", back_populates="applications")
    job = relationship("Job", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("job_seeker_id", "job_id", name="uq_application_seeker_job"),
    )


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_seeker_id = Column(Integer, ForeignKey("job_seekers.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    job_seeker = relationship("JobSeeker", back_populates="saved_jobs")
    job = relationship("Job")

    __table_args__ = (
        UniqueConstraint("job_seeker_id", "job_id", name="uq_saved_job_seeker_job"),
    )
