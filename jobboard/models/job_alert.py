from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from jobboard.database import Base
from jobboard.models.enums import AlertFrequency
from jobboard.utils.clock import utc_now


class JobAlert(Base):
    __tablename__ = "job_alerts"

    id = Column(Integer, primary_key=True, index=True)
    job_seeker_id = Column(Integer, ForeignKey("job_seekers.id", ondelete="CASCADE"), nullable=False, index=True)

    # Optional filters; None means "no constraint".
    title = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    job_type = Column(String(32), nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)

    email_alerts = Column(Boolean, nullable=False, default=True)
    sms_alerts = Column(Boolean, nullable=False, default=False)
    frequency = Column(String(16), nullable=False, default=AlertFrequency.DAILY.value)
    active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    job_seeker = relationship("JobSeeker", back_populates="job_alerts")
