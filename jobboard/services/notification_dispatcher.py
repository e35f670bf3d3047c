"""Outbound delivery of notification requests to the notification endpoint."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from jobboard.config import Settings, notification_endpoint_url


logger = logging.getLogger(__name__)

SERVICE_TOKEN_HEADER = "X-Service-Token"


class NotificationDeliveryError(Exception):
    """A notification request was not accepted by the notification endpoint."""


class NotificationDispatcher(ABC):
    """Sends one notification payload and returns the endpoint's result.

    Implementations raise on failure; callers decide whether a failure counts.
    """

    async def __aenter__(self) -> "NotificationDispatcher":
        return self

    async def __aexit__(self, *_: Any) -> None:
        return None

    @abstractmethod
    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...


class HttpNotificationDispatcher(NotificationDispatcher):
    def __init__(
        self,
        endpoint_url: str,
        *,
        service_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._service_token = service_token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpNotificationDispatcher":
        return cls(
            notification_endpoint_url(settings),
            service_token=settings.notification_service_token,
            timeout=settings.notification_timeout_seconds,
        )

    async def __aenter__(self) -> "HttpNotificationDispatcher":
        self._client = httpx.AsyncClient(
            headers={SERVICE_TOKEN_HEADER: self._service_token},
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._client:
            raise RuntimeError("Use 'async with dispatcher:' before sending.")
        try:
            response = await self._client.post(self._endpoint_url, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationDeliveryError(f"{payload.get('type')} request failed: {exc}") from exc

        if not response.is_success:
            raise NotificationDeliveryError(
                f"Failed to send {str(payload.get('type', '')).lower()} notification "
                f"(status {response.status_code})"
            )
        logger.debug("notification accepted type=%s recipient=%s", payload.get("type"), payload.get("recipient"))
        return response.json()
