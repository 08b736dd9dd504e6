"""Earliest-free-slot search over the weekly virtual-estimate template.

Virtual estimates run on weekday evenings (Mon–Thu) in four 30-minute slots.
Each candidate is checked against the calendar with a 15-minute buffer on
both sides, so the estimator always has setup time between calls even
though the buffer never appears on the booked event.

The search is greedy: candidates are generated in chronological order and
the first one whose buffer window has no busy intervals wins.  Free/busy
queries are issued one at a time; a failing query aborts the search.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.services.calendar_gateway import CalendarGateway

logger = logging.getLogger(__name__)

HORIZON_DAYS = 21
SLOT_DURATION = timedelta(minutes=30)
BUFFER = timedelta(minutes=15)


@dataclass(frozen=True)
class SlotTemplate:
    """Daily start times, valid only on the listed weekdays (Monday == 0)."""

    start_times: tuple[time, ...]
    weekdays: frozenset[int]
    duration: timedelta = SLOT_DURATION

    def __post_init__(self):
        if list(self.start_times) != sorted(self.start_times):
            raise ValueError("Slot start times must be in ascending order")


DEFAULT_TEMPLATE = SlotTemplate(
    start_times=(time(17, 30), time(18, 0), time(18, 30), time(19, 0)),
    weekdays=frozenset({0, 1, 2, 3}),
)


@dataclass(frozen=True)
class CandidateSlot:
    day: date
    start: datetime
    end: datetime
    buffer_start: datetime
    buffer_end: datetime


@dataclass(frozen=True)
class FoundSlot:
    """A free slot, as UTC instants."""

    start: datetime
    end: datetime


def iter_candidate_slots(
    today: date,
    tz: ZoneInfo,
    template: SlotTemplate = DEFAULT_TEMPLATE,
    horizon_days: int = HORIZON_DAYS,
    buffer: timedelta = BUFFER,
) -> Iterator[CandidateSlot]:
    """Yield every template slot from *today* onward, earliest first."""
    for offset in range(horizon_days):
        day = today + timedelta(days=offset)
        if day.weekday() not in template.weekdays:
            continue
        for start_time in template.start_times:
            start = datetime.combine(day, start_time, tzinfo=tz).astimezone(UTC)
            end = start + template.duration
            yield CandidateSlot(
                day=day,
                start=start,
                end=end,
                buffer_start=start - buffer,
                buffer_end=end + buffer,
            )


def find_next_slot(
    gateway: CalendarGateway,
    *,
    now: datetime,
    tz: ZoneInfo,
    template: SlotTemplate = DEFAULT_TEMPLATE,
    horizon_days: int = HORIZON_DAYS,
) -> FoundSlot | None:
    """Return the earliest candidate with an empty buffer window, or ``None``.

    ``CalendarAPIError`` from the gateway propagates: an unknown calendar
    state is never treated as free.
    """
    today = now.astimezone(tz).date()
    checked = 0
    for slot in iter_candidate_slots(today, tz, template, horizon_days):
        checked += 1
        busy = gateway.query_free_busy(slot.buffer_start, slot.buffer_end)
        if not busy:
            logger.info(
                "Found free slot %s after %d free/busy checks",
                slot.start.astimezone(tz).isoformat(), checked,
            )
            return FoundSlot(start=slot.start, end=slot.end)

    logger.info("No free slot in the next %d days (%d checks)", horizon_days, checked)
    return None
