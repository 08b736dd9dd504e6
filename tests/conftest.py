"""Shared test fixtures for the tool-server test suite."""

from __future__ import annotations

import os

import pytest

from src.config import Settings
from src.errors import MessagingAPIError
from src.scheduling.booking import BookingService
from src.tools.dispatcher import ToolDispatcher
from src.tools.notifications import EscalationNotifier, PhotoLinkNotifier
from tests.fakes import ESCALATION_NUMBER, MONDAY_MORNING, FakeCalendar, FakeSms


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    ``src.server`` builds its settings on module load, so the required
    variables must exist before any test module imports it.
    """
    os.environ.setdefault("VAPI_SECRET_TOKEN", "test-secret")
    os.environ.setdefault("GOOGLE_SA_EMAIL", "estimates@test-project.iam.gserviceaccount.com")
    os.environ.setdefault("GOOGLE_SA_KEY", "test-key")
    os.environ.setdefault("CALENDAR_ID", "estimates@example.com")
    os.environ.setdefault("METRICS_ENABLED", "false")


@pytest.fixture
def settings():
    return Settings(
        api_secret="test-secret",
        google_sa_email="estimates@test-project.iam.gserviceaccount.com",
        google_sa_key="test-key",
        calendar_id="estimates@example.com",
        time_zone="America/New_York",
        escalation_number=ESCALATION_NUMBER,
    )


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def booking_service(calendar, settings):
    return BookingService(calendar, settings, clock=lambda: MONDAY_MORNING)


@pytest.fixture
def dispatcher(booking_service, sms, settings):
    return ToolDispatcher(
        booking=booking_service,
        photo_link=PhotoLinkNotifier(sms),
        escalation=EscalationNotifier(sms, settings.escalation_number),
    )


@pytest.fixture
def booking_args():
    """A complete ``bookVirtualEstimate`` argument payload."""
    return {
        "caller_name": "Dana Whitfield",
        "caller_phone": "+18045551234",
        "caller_email": "dana@example.com",
        "job_type": "Interior",
        "address_line1": "12 Grove Ave",
        "city": "Richmond",
        "state": "VA",
        "zip": "23220",
        "rooms_or_areas": "Kitchen, hallway",
        "issues": "Peeling paint",
        "notes": "Dog on premises",
    }


@pytest.fixture
def provider_outage():
    return MessagingAPIError("SMS provider returned 503: unavailable", status_code=503)
