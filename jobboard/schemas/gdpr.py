from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from jobboard.schemas.base import CamelModel


ConsentType = Literal["DATA_RETENTION", "MARKETING", "JOB_ALERTS", "COOKIES", "ANALYTICS"]
ConsentAction = Literal["GRANTED", "REVOKED"]


class ConsentRequest(CamelModel):
    type: ConsentType
    action: ConsentAction


class ConsentResponse(CamelModel):
    message: str
    consent_type: str
    action: str
    timestamp: datetime


class DataExportRequest(CamelModel):
    format: Literal["json", "csv"] = "json"


class DataExportResponse(CamelModel):
    exported_at: datetime
    user_id: int
    user_email: str
    data_summary: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)


class AccountDeletionResponse(CamelModel):
    message: str
    deleted_at: datetime
