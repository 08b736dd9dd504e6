"""Tests for the earliest-free-slot search."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

import pytest

from src.errors import CalendarAPIError
from src.scheduling.availability import (
    BUFFER,
    DEFAULT_TEMPLATE,
    HORIZON_DAYS,
    SlotTemplate,
    find_next_slot,
    iter_candidate_slots,
)
from tests.fakes import MONDAY_MORNING, NEW_YORK, FakeCalendar, local_busy

# Mon–Thu in three full weeks, four slots each
FULL_GRID_CHECKS = 3 * 4 * 4


def _search(calendar: FakeCalendar, now: datetime = MONDAY_MORNING):
    return find_next_slot(calendar, now=now, tz=NEW_YORK)


# ── Candidate generation ─────────────────────────────────────────────


class TestCandidateSlots:
    def test_first_candidate_is_today_at_first_template_time(self):
        first = next(iter_candidate_slots(date(2026, 10, 19), NEW_YORK))
        assert first.day == date(2026, 10, 19)
        assert first.start == datetime(2026, 10, 19, 21, 30, tzinfo=UTC)
        assert first.end == datetime(2026, 10, 19, 22, 0, tzinfo=UTC)

    def test_buffer_window_is_fifteen_minutes_each_side(self):
        first = next(iter_candidate_slots(date(2026, 10, 19), NEW_YORK))
        assert first.buffer_start == first.start - timedelta(minutes=15)
        assert first.buffer_end == first.end + timedelta(minutes=15)

    def test_only_monday_to_thursday_within_horizon(self):
        slots = list(iter_candidate_slots(date(2026, 10, 19), NEW_YORK))
        assert len(slots) == FULL_GRID_CHECKS
        assert {s.day.weekday() for s in slots} == {0, 1, 2, 3}
        assert max(s.day for s in slots) < date(2026, 10, 19) + timedelta(days=HORIZON_DAYS)

    def test_slots_are_chronological(self):
        starts = [s.start for s in iter_candidate_slots(date(2026, 10, 19), NEW_YORK)]
        assert starts == sorted(starts)

    def test_wall_clock_survives_dst_change(self):
        # US DST ends Sunday 1 Nov 2026; Monday 2 Nov 17:30 is EST (UTC-5)
        slots = list(iter_candidate_slots(date(2026, 11, 2), NEW_YORK, horizon_days=1))
        assert slots[0].start == datetime(2026, 11, 2, 22, 30, tzinfo=UTC)
        assert [s.start.astimezone(NEW_YORK).time() for s in slots] == list(
            DEFAULT_TEMPLATE.start_times
        )

    def test_weekend_day_yields_nothing(self):
        assert list(iter_candidate_slots(date(2026, 10, 24), NEW_YORK, horizon_days=2)) == []

    def test_template_rejects_unsorted_times(self):
        with pytest.raises(ValueError):
            SlotTemplate(start_times=(time(18, 0), time(17, 30)), weekdays=frozenset({0}))


# ── Search ───────────────────────────────────────────────────────────


class TestFindNextSlot:
    def test_returns_first_candidate_when_calendar_is_empty(self):
        calendar = FakeCalendar()
        slot = _search(calendar)

        assert slot.start == datetime(2026, 10, 19, 21, 30, tzinfo=UTC)
        assert slot.end == datetime(2026, 10, 19, 22, 0, tzinfo=UTC)
        # Greedy: stops after the first free window
        assert calendar.queries == [
            (datetime(2026, 10, 19, 21, 15, tzinfo=UTC), datetime(2026, 10, 19, 22, 15, tzinfo=UTC)),
        ]

    def test_busy_interval_inside_buffer_skips_slot(self):
        # Ends 17:20, inside the 17:15 buffer start of the 17:30 slot
        calendar = FakeCalendar([local_busy(MONDAY_MORNING, "16:50", "17:20")])
        slot = _search(calendar)

        assert slot.start.astimezone(NEW_YORK) == MONDAY_MORNING.replace(hour=18, minute=0)
        assert len(calendar.queries) == 2

    def test_busy_evening_moves_to_next_day(self):
        calendar = FakeCalendar([local_busy(MONDAY_MORNING, "17:00", "20:00")])
        slot = _search(calendar)

        local = slot.start.astimezone(NEW_YORK)
        assert local.date() == date(2026, 10, 20)
        assert local.time() == time(17, 30)

    def test_never_returns_slot_overlapping_busy_buffer(self):
        busy = [
            local_busy(MONDAY_MORNING, "17:30", "18:00"),
            local_busy(MONDAY_MORNING, "18:40", "19:50"),
        ]
        calendar = FakeCalendar(busy)
        slot = _search(calendar)

        window = (slot.start - BUFFER, slot.end + BUFFER)
        assert not any(b.start < window[1] and b.end > window[0] for b in busy)

    def test_friday_search_starts_on_monday(self):
        friday = datetime(2026, 10, 23, 10, 0, tzinfo=NEW_YORK)
        calendar = FakeCalendar()
        slot = _search(calendar, now=friday)

        assert slot.start.astimezone(NEW_YORK).date() == date(2026, 10, 26)
        assert len(calendar.queries) == 1

    def test_never_queries_friday_to_sunday(self):
        calendar = FakeCalendar(all_busy=True)
        _search(calendar)

        queried_days = {start.astimezone(NEW_YORK).weekday() for start, _ in calendar.queries}
        assert queried_days == {0, 1, 2, 3}

    def test_fully_booked_grid_returns_none(self):
        calendar = FakeCalendar(all_busy=True)
        assert _search(calendar) is None
        assert len(calendar.queries) == FULL_GRID_CHECKS

    def test_today_is_taken_in_configured_zone(self):
        # 02:00Z Tuesday is still Monday evening in New York
        late_monday = datetime(2026, 10, 20, 2, 0, tzinfo=UTC)
        calendar = FakeCalendar()
        slot = _search(calendar, now=late_monday)
        assert slot.start.astimezone(NEW_YORK).date() == date(2026, 10, 19)

    def test_gateway_failure_aborts_search(self):
        calendar = FakeCalendar()
        calendar.query_error = CalendarAPIError("timed out")

        with pytest.raises(CalendarAPIError):
            _search(calendar)
        assert len(calendar.queries) == 1

    def test_found_slot_round_trips_to_template_wall_clock(self):
        calendar = FakeCalendar([local_busy(MONDAY_MORNING, "17:00", "18:10")])
        slot = _search(calendar)

        local_start = slot.start.astimezone(NEW_YORK)
        local_end = slot.end.astimezone(NEW_YORK)
        assert local_start.time() == time(18, 30)
        assert local_end.time() == time(19, 0)
        assert local_start.time() in DEFAULT_TEMPLATE.start_times
