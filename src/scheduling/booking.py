"""Book the next free virtual-estimate slot on the estimator's calendar."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.api.schemas import BookingConfirmation, BookingRequest
from src.config import Settings
from src.errors import NoAvailability
from src.scheduling.availability import DEFAULT_TEMPLATE, SlotTemplate, find_next_slot
from src.services.calendar_gateway import CalendarGateway, isoformat_utc

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_summary(request: BookingRequest) -> str:
    return f"Virtual Estimate - {request.caller_name} ({request.job_type})"


def build_description(request: BookingRequest) -> str:
    """Render the event description.

    Line order and labels are read by people and scripts downstream; every
    line is always present, empty when the caller gave nothing.
    """
    return "\n".join([
        f"Phone: {request.caller_phone}",
        f"Email: {request.caller_email or ''}",
        f"Address: {request.address_line1}, {request.city}, {request.state} {request.zip}",
        f"Rooms/Areas: {request.rooms_or_areas or ''}",
        f"Issues: {request.issues or ''}",
        f"Notes: {request.notes or ''}",
    ])


class BookingService:
    """Find the earliest free slot and create the calendar event for it.

    There is no lock between the free/busy check and the insert: two
    concurrent bookings can claim the same slot.
    """

    def __init__(
        self,
        calendar: CalendarGateway,
        settings: Settings,
        *,
        template: SlotTemplate = DEFAULT_TEMPLATE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._calendar = calendar
        self._time_zone = settings.time_zone
        self._tz = settings.zone
        self._template = template
        self._clock = clock

    def book(self, request: BookingRequest) -> BookingConfirmation:
        """Book a virtual estimate.

        Raises:
            NoAvailability: nothing free in the search horizon.
            UpstreamError: the calendar failed during search or insert.
        """
        slot = find_next_slot(
            self._calendar, now=self._clock(), tz=self._tz, template=self._template,
        )
        if slot is None:
            raise NoAvailability("No free slot in search horizon")

        created = self._calendar.create_event(
            summary=build_summary(request),
            description=build_description(request),
            start=slot.start,
            end=slot.end,
            time_zone=self._time_zone,
            request_conferencing=True,
        )
        logger.info(
            "Booked virtual estimate for %s at %s (event %s)",
            request.caller_name, isoformat_utc(slot.start), created.event_id,
        )
        return BookingConfirmation(
            start=isoformat_utc(slot.start),
            end=isoformat_utc(slot.end),
            event_id=created.event_id,
            meet_link=created.conference_link,
        )
