from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from jobboard.models.enums import AlertFrequency
from jobboard.schemas.base import CamelModel


class SavedSearchCreate(CamelModel):
    name: str = Field(min_length=1)
    query: str | None = None
    location: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    alert_enabled: bool = False
    alert_frequency: AlertFrequency = AlertFrequency.DAILY

    @field_validator("name")
    @classmethod
    def _trim_name(cls, v: str) -> str:
        name = v.strip()[:120]
        if not name:
            raise ValueError("Name is required")
        return name


class SavedSearchUpdate(CamelModel):
    name: str | None = None
    query: str | None = None
    location: str | None = None
    filters: dict[str, Any] | None = None
    alert_enabled: bool | None = None
    alert_frequency: AlertFrequency | None = None

    @field_validator("name")
    @classmethod
    def _trim_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        name = v.strip()[:120]
        if not name:
            raise ValueError("Name cannot be empty")
        return name


class SavedSearchRead(CamelModel):
    id: int
    name: str
    query: str | None = None
    location: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    alert_enabled: bool
    alert_frequency: str
    created_at: datetime
    updated_at: datetime


class RecentSearchCreate(CamelModel):
    query: str = ""
    location: str = ""
    filters: dict[str, Any] | None = None


class RecentSearchRead(CamelModel):
    id: int
    query: str
    location: str
    filters: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_validator("filters", mode="before")
    @classmethod
    def _empty_filters(cls, v: Any) -> Any:
        return v or {}
