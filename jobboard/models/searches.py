from __future__ import annotations

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String

from jobboard.database import Base
from jobboard.models.enums import AlertFrequency
from jobboard.utils.clock import utc_now


class SavedSearch(Base):
    __tablename__ = "saved_searches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    query = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    filters = Column(JSON, nullable=False, default=dict)
    alert_enabled = Column(Boolean, nullable=False, default=False)
    alert_frequency = Column(String(16), nullable=False, default=AlertFrequency.DAILY.value)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class RecentSearch(Base):
    __tablename__ = "recent_searches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    query = Column(String(255), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    filters = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
