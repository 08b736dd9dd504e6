"""Google Calendar gateway: free/busy reads and event creation for one calendar.

Authentication uses a service-account JWT built from the key material in
``Settings``.  The discovery-based API client sits on ``httplib2``, which is
not thread-safe, so a fresh service object is built for every call; with the
bundled static discovery document this is cheap and needs no network.

Every failure (HTTP status, token refresh, socket timeout) surfaces as
``CalendarAPIError``.  No retries: the voice agent retries the whole tool
call if it wants to.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, Protocol

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.config import Settings
from src.errors import CalendarAPIError
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

_METRICS_SERVICE = "google_calendar"

# Exceptions the API client can raise for a failed call; ValueError covers
# undecodable response bodies
_TRANSPORT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError, ValueError)


def isoformat_utc(value: datetime) -> str:
    """Format an aware datetime as ``2026-10-19T21:30:00.000Z``."""
    utc = value.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CreatedEvent:
    event_id: str
    conference_link: str = ""


class CalendarGateway(Protocol):
    """What the scheduling code needs from a calendar."""

    def query_free_busy(
        self, window_start: datetime, window_end: datetime,
    ) -> list[BusyInterval]: ...

    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        time_zone: str,
        request_conferencing: bool = True,
    ) -> CreatedEvent: ...


class GoogleCalendarGateway:
    """``CalendarGateway`` backed by the Google Calendar v3 API."""

    def __init__(
        self,
        settings: Settings,
        *,
        service_factory: Callable[[], Any] | None = None,
    ):
        self._calendar_id = settings.calendar_id
        self._timeout = settings.request_timeout_seconds
        self._credentials = None
        self._settings = settings
        # Injectable for tests: returns an object shaped like the discovery client
        self._service_factory = service_factory or self._build_service

    def _get_credentials(self) -> service_account.Credentials:
        if self._credentials is None:
            try:
                self._credentials = service_account.Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self._settings.google_sa_email,
                        "private_key": self._settings.google_sa_key,
                        "token_uri": TOKEN_URI,
                    },
                    scopes=SCOPES,
                )
            except ValueError as exc:
                raise CalendarAPIError(f"Google Calendar credentials invalid: {exc}") from exc
        return self._credentials

    def _build_service(self) -> Any:
        http = google_auth_httplib2.AuthorizedHttp(
            self._get_credentials(),
            http=httplib2.Http(timeout=self._timeout),
        )
        return build("calendar", "v3", http=http, cache_discovery=False)

    def _execute(self, operation: str, make_request: Callable[[Any], Any]) -> dict[str, Any]:
        """Build the request against a fresh service and run it."""
        try:
            with metrics.track(_METRICS_SERVICE, operation):
                return make_request(self._service_factory()).execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            raise CalendarAPIError(
                f"Google Calendar {operation} failed with HTTP {status}: {exc}",
                status_code=int(status) if status else None,
            ) from exc
        except _TRANSPORT_ERRORS as exc:
            raise CalendarAPIError(
                f"Google Calendar {operation} failed ({type(exc).__name__}): {exc}"
            ) from exc

    # ── Public API ───────────────────────────────────────────────────

    def query_free_busy(
        self, window_start: datetime, window_end: datetime,
    ) -> list[BusyInterval]:
        """Return the busy intervals of the configured calendar in the window.

        A response that carries per-calendar ``errors`` (e.g. the service
        account lost access) or omits the calendar is a failure, not an
        empty busy list.
        """
        body = {
            "timeMin": isoformat_utc(window_start),
            "timeMax": isoformat_utc(window_end),
            "items": [{"id": self._calendar_id}],
        }
        data = self._execute(
            "freebusy.query", lambda service: service.freebusy().query(body=body),
        )

        calendar = (data.get("calendars") or {}).get(self._calendar_id)
        if calendar is None:
            raise CalendarAPIError(
                f"Free/busy response did not include calendar {self._calendar_id}"
            )
        if calendar.get("errors"):
            reasons = ", ".join(e.get("reason", "unknown") for e in calendar["errors"])
            raise CalendarAPIError(f"Free/busy query reported errors: {reasons}")

        return [
            BusyInterval(
                start=datetime.fromisoformat(item["start"]),
                end=datetime.fromisoformat(item["end"]),
            )
            for item in calendar.get("busy", [])
        ]

    def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
        time_zone: str,
        request_conferencing: bool = True,
    ) -> CreatedEvent:
        """Insert an event; optionally ask Google to attach a Meet link.

        Not idempotent: two calls create two events.
        """
        event: dict[str, Any] = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": isoformat_utc(start), "timeZone": time_zone},
            "end": {"dateTime": isoformat_utc(end), "timeZone": time_zone},
        }
        params: dict[str, Any] = {"calendarId": self._calendar_id, "body": event}
        if request_conferencing:
            event["conferenceData"] = {
                "createRequest": {"requestId": f"rp-{int(time.time() * 1000)}"},
            }
            params["conferenceDataVersion"] = 1

        data = self._execute(
            "events.insert", lambda service: service.events().insert(**params),
        )
        created = CreatedEvent(
            event_id=data.get("id", ""),
            conference_link=data.get("hangoutLink") or "",
        )
        logger.info("Created calendar event %s (%s)", created.event_id, summary)
        return created
