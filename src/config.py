"""Centralized configuration for the Refresh Painting tool server.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/refresh-painting/<VARIABLE_NAME>``.

Configuration is read once, at startup, into an immutable ``Settings``
object which is then handed to the gateways and the dispatcher.  Nothing
below the entry points reads ``os.environ``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "America/New_York"
DEFAULT_PORT = 3000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0


# ── Secret resolution ────────────────────────────────────────────────

def _on_aws() -> bool:
    return bool(os.getenv("AWS_EXECUTION_ENV"))


def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415 - lazy import to avoid boto3 dep in tests

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/refresh-painting/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _optional_env(name: str, default: str = "") -> str:
    """Return a config value from env-var or SSM, or *default*."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _on_aws():
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    return default


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = _optional_env(name)
    if value:
        return value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /refresh-painting/{name} (AWS)."
    )


def _safe_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid number for {name}: {raw!r}") from None


def _safe_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


# ── Settings ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once by ``load_settings``."""

    api_secret: str
    google_sa_email: str
    google_sa_key: str
    calendar_id: str
    time_zone: str = DEFAULT_TIME_ZONE
    ghl_api_key: str = ""
    ghl_location_id: str = ""
    escalation_number: str = ""
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    server_host: str = "0.0.0.0"
    server_port: int = DEFAULT_PORT

    @property
    def messaging_configured(self) -> bool:
        return bool(self.ghl_api_key and self.ghl_location_id)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)


def load_settings() -> Settings:
    """Read the environment (and SSM on AWS) into a ``Settings`` instance."""
    settings = Settings(
        api_secret=_require_env("VAPI_SECRET_TOKEN"),
        google_sa_email=_require_env("GOOGLE_SA_EMAIL"),
        # Keys pasted into env vars usually carry literal "\n" sequences
        google_sa_key=_require_env("GOOGLE_SA_KEY").replace("\\n", "\n"),
        calendar_id=_require_env("CALENDAR_ID"),
        time_zone=_optional_env("TIME_ZONE", DEFAULT_TIME_ZONE),
        ghl_api_key=_optional_env("GHL_API_KEY"),
        ghl_location_id=_optional_env("GHL_LOCATION_ID"),
        escalation_number=_optional_env("ESCALATION_SMS"),
        request_timeout_seconds=_safe_float(
            "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS,
        ),
        server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
        server_port=_safe_int("PORT", DEFAULT_PORT),
    )
    try:
        settings.zone
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone in TIME_ZONE: {settings.time_zone!r}") from None
    if settings.request_timeout_seconds <= 0:
        raise ValueError(
            f"REQUEST_TIMEOUT_SECONDS must be > 0, got {settings.request_timeout_seconds}"
        )
    if not settings.messaging_configured:
        logger.info("GHL credentials not set; SMS notifications are disabled")
    return settings
