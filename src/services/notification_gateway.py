"""SMS delivery through the LeadConnector (GoHighLevel) conversations API.

API docs: https://highlevel.stoplight.io/docs/integrations/
Requests carry a Bearer API key plus the ``Location-Id`` of the sub-account.

When either credential is missing the gateway degrades to a no-op: SMS is
a courtesy channel and must never block the voice agent.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from src.config import Settings
from src.errors import MessagingAPIError
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

LEADCONNECTOR_BASE_URL = "https://services.leadconnectorhq.com"
LEADCONNECTOR_API_VERSION = "2021-07-28"
MESSAGES_PATH = "/conversations/messages"

_METRICS_SERVICE = "leadconnector"


class NotificationGateway(Protocol):
    def send(self, to_number: str, message: str) -> None: ...


class LeadConnectorGateway:
    """``NotificationGateway`` that posts SMS messages to LeadConnector."""

    def __init__(
        self,
        settings: Settings,
        *,
        base_url: str = LEADCONNECTOR_BASE_URL,
        client: httpx.Client | None = None,
    ):
        self._enabled = settings.messaging_configured
        self._client = client
        if self._client is None and self._enabled:
            self._client = httpx.Client(
                base_url=base_url,
                headers={
                    "Authorization": f"Bearer {settings.ghl_api_key}",
                    "Version": LEADCONNECTOR_API_VERSION,
                    "Content-Type": "application/json",
                    "Location-Id": settings.ghl_location_id,
                },
                timeout=settings.request_timeout_seconds,
            )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def send(self, to_number: str, message: str) -> None:
        """Send *message* to *to_number*; silently skipped when unconfigured."""
        if not self._enabled:
            logger.debug("SMS to %s skipped: messaging not configured", to_number)
            return

        operation = f"POST {MESSAGES_PATH}"
        try:
            with metrics.track(_METRICS_SERVICE, operation):
                response = self._client.post(
                    MESSAGES_PATH,
                    json={"to": to_number, "type": "SMS", "message": message},
                )
                if response.status_code >= 400:
                    raise MessagingAPIError(
                        f"SMS provider returned {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )
        except httpx.HTTPError as exc:
            raise MessagingAPIError(
                f"SMS provider request failed ({type(exc).__name__}): {exc}"
            ) from exc

        logger.info("SMS sent to %s", to_number)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
