from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from jobboard.schemas.base import CamelModel


class NotificationRequest(CamelModel):
    # Plain str so an unknown channel is answered with 400 by the handler, not 422.
    type: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    subject: str | None = None
    message: str = Field(min_length=1)
    template: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationResult(CamelModel):
    id: str
    type: str
    recipient: str
    status: str
    timestamp: datetime


class NotificationResponse(CamelModel):
    success: bool
    message: str
    result: NotificationResult
