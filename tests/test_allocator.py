"""
tests/test_allocator.py
Unit tests for laytime classification, despatch/demurrage and cost proration.
Run with: pytest tests/ -v
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from events.models import Event, EventCategory, LaytimeTerms
from events.normalizer import normalize_events
from laytime.allocator import (
    CLASSIFICATION,
    REASON_CARGO,
    REASON_DEFAULT,
    REASON_DELAYS,
    LaytimeAllocator,
    classify,
)

C = EventCategory
T0 = datetime(2024, 11, 15, 10, 0)


def ev(label, category, start_h: float, end_h: float) -> Event:
    return Event(
        label=label,
        category=category,
        start=T0 + timedelta(hours=start_h),
        end=T0 + timedelta(hours=end_h),
    )


@pytest.fixture
def default_terms() -> LaytimeTerms:
    return LaytimeTerms(allowed_minutes=4320, daily_rate=20_000.0)


@pytest.fixture
def allocator(default_terms) -> LaytimeAllocator:
    return LaytimeAllocator(default_terms)


class TestClassification:

    def test_every_category_is_classified(self):
        assert set(CLASSIFICATION) == set(EventCategory)

    def test_cargo_counts(self):
        assert classify(ev("Loading", C.CARGO_OPERATIONS, 0, 1)) == (True, REASON_CARGO)

    @pytest.mark.parametrize("category", [C.DELAYS, C.STOPPAGES])
    def test_delays_and_stoppages_excluded(self, category):
        assert classify(ev("x", category, 0, 1)) == (False, REASON_DELAYS)

    @pytest.mark.parametrize("category", [C.ARRIVAL, C.DEPARTURE, C.BUNKERING, C.ANCHORAGE, C.OTHER])
    def test_everything_else_not_counted(self, category):
        assert classify(ev("x", category, 0, 1)) == (False, REASON_DEFAULT)


class TestSummary:

    def test_four_hours_of_cargo(self, allocator):
        """Cargo 10:00–14:00 against 3 days allowed."""
        result = allocator.allocate([ev("Loading", C.CARGO_OPERATIONS, 0, 4)])
        s = result.summary
        assert s.total_counted_duration == "4h"
        assert s.overrun == "0m"
        assert s.overrun_cost is None
        assert s.overrun_cost_display is None
        assert s.time_saved == "2d 20h 0m"
        assert s.allowed_duration == "3 days"

    def test_four_days_counted_one_day_overrun(self, allocator):
        result = allocator.allocate([ev("Loading", C.CARGO_OPERATIONS, 0, 96)])
        s = result.summary
        assert s.total_counted_minutes == 5760
        assert s.overrun == "1d 0h 0m"
        assert s.overrun_cost_display == "$20,000.00"
        assert s.time_saved_minutes == 0

    def test_partial_day_overrun_is_prorated(self, allocator):
        # 3 days + 18h36m counted -> 1116 minutes over -> 0.775 day
        result = allocator.allocate([ev("Loading", C.CARGO_OPERATIONS, 0, 72 + 18.6)])
        assert result.summary.overrun_minutes == 1116
        assert result.summary.overrun_cost == 15_500.0
        assert result.summary.overrun_cost_display == "$15,500.00"

    def test_cost_rounds_to_cents(self, allocator):
        assert allocator.overrun_cost(1) == 13.89

    def test_exactly_allowed(self, allocator):
        s = allocator.allocate([ev("Loading", C.CARGO_OPERATIONS, 0, 72)]).summary
        assert s.time_saved_minutes == 0
        assert s.overrun_minutes == 0
        assert s.overrun_cost is None

    def test_non_counted_events_do_not_consume_laytime(self, allocator):
        result = allocator.allocate([
            ev("Waiting", C.ANCHORAGE, 0, 100),
            ev("Rain", C.STOPPAGES, 100, 110),
        ])
        assert result.summary.total_counted_minutes == 0
        assert result.summary.time_saved == "3d 0h 0m"

    def test_overlapping_counted_events_are_summed(self, allocator):
        """Concurrent cargo operations are not de-duplicated."""
        result = allocator.allocate([
            ev("Hold 1", C.CARGO_OPERATIONS, 0, 6),
            ev("Hold 2", C.CARGO_OPERATIONS, 0, 6),
        ])
        assert result.summary.total_counted_duration == "12h"

    def test_empty_input(self, allocator):
        result = allocator.allocate([])
        assert result.events == ()
        assert result.summary.total_counted_minutes == 0
        assert result.summary.time_saved == "3d 0h 0m"


class TestTerms:

    def test_custom_terms(self):
        terms = LaytimeTerms(allowed_minutes=1440, daily_rate=12_000.0, currency_symbol="€")
        s = LaytimeAllocator(terms).allocate([ev("Loading", C.CARGO_OPERATIONS, 0, 36)]).summary
        assert s.allowed_duration == "1 day"
        assert s.overrun == "12h"
        assert s.overrun_cost_display == "€6,000.00"

    def test_defaults_from_settings(self, monkeypatch):
        from config.settings import settings
        monkeypatch.setattr(settings, "laytime_allowed_minutes", 2880)
        monkeypatch.setattr(settings, "demurrage_daily_rate", 10_000.0)
        allocator = LaytimeAllocator()
        assert allocator.terms.allowed_minutes == 2880
        assert allocator.terms.daily_rate == 10_000.0


class TestProperties:

    BATCH = [
        ev("Arrived", C.ARRIVAL, 0, 2),
        ev("Loading", C.CARGO_OPERATIONS, 2, 30),
        ev("Rain", C.STOPPAGES, 10, 14),
        ev("Bunkers", C.BUNKERING, 20, 24),
        ev("More loading", C.CARGO_OPERATIONS, 30, 90),
        ev("Breakdown", C.DELAYS, 90, 93),
    ]

    def test_conservation(self, allocator):
        result = allocator.allocate(normalize_events(self.BATCH))
        non_counted = sum(le.duration_minutes for le in result.events if not le.counted)
        total = sum(e.duration_minutes for e in normalize_events(self.BATCH))
        assert result.summary.total_counted_minutes + non_counted == total

    def test_despatch_and_demurrage_exclusive(self, allocator):
        for hours in (0, 10, 72, 73, 200):
            s = allocator.allocate([ev("Loading", C.CARGO_OPERATIONS, 0, hours)]).summary
            assert not (s.time_saved_minutes > 0 and s.overrun_minutes > 0)

    def test_events_keep_order_and_reasons(self, allocator):
        result = allocator.allocate(normalize_events(self.BATCH))
        assert [le.event.label for le in result.events] == [e.label for e in self.BATCH]
        assert result.events[1].counted and result.events[1].duration == "1d 4h 0m"
        assert result.events[2].reason == REASON_DELAYS

    def test_idempotent(self, allocator):
        events = normalize_events(self.BATCH)
        assert allocator.allocate(events) == allocator.allocate(events)
