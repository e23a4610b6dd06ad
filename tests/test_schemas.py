"""
tests/test_schemas.py
Input validation (lenient categories and timestamps) and output rendering.
Run with: pytest tests/ -v
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from events.models import EventCategory
from schemas.inputs import RawEvent, StatementOfFacts, load_raw_events


class TestEventCategoryParsing:

    @pytest.mark.parametrize("raw", [
        "Cargo Operations", "cargo operations", "CargoOperations",
        "cargo_operations", "CARGO-OPERATIONS", "Cargo",
    ])
    def test_cargo_aliases(self, raw):
        assert EventCategory.parse(raw) is EventCategory.CARGO_OPERATIONS

    @pytest.mark.parametrize("raw", ["Shifting", "", None, "Weather"])
    def test_unknown_is_other(self, raw):
        assert EventCategory.parse(raw) is EventCategory.OTHER

    def test_chart_color_for_every_category(self):
        assert all(c.chart_color.startswith("chart-") for c in EventCategory)


class TestRawEvent:

    def test_extractor_field_names(self):
        raw = RawEvent.model_validate({
            "event": "Pilot Attended On Board",
            "category": "Arrival",
            "startTime": "2024-11-15 08:00",
            "endTime": "2024-11-15 09:30",
            "status": "Completed",
        })
        assert raw.label == "Pilot Attended On Board"
        assert raw.start == datetime(2024, 11, 15, 8, 0)
        assert raw.end == datetime(2024, 11, 15, 9, 30)

    def test_snake_case_field_names(self):
        raw = RawEvent.model_validate({
            "label": "Loading", "category": "cargo_operations",
            "start": "2024-11-15T08:00:00", "end": None,
        })
        assert raw.category is EventCategory.CARGO_OPERATIONS
        assert raw.end is None

    @pytest.mark.parametrize("placeholder", ["", "N/A", "Not Mentioned", "null"])
    def test_placeholder_times_become_missing(self, placeholder):
        raw = RawEvent.model_validate({"event": "x", "startTime": "2024-11-15 08:00", "endTime": placeholder})
        assert raw.end is None

    def test_day_first_format(self):
        raw = RawEvent.model_validate({"event": "x", "startTime": "15/11/2024 08:00"})
        assert raw.start == datetime(2024, 11, 15, 8, 0)

    def test_timezone_dropped(self):
        raw = RawEvent.model_validate({
            "event": "x", "startTime": datetime(2024, 11, 15, 8, 0, tzinfo=timezone.utc),
        })
        assert raw.start.tzinfo is None

    def test_unknown_category_is_flagged(self):
        raw = RawEvent.model_validate({"event": "x", "category": "Shifting", "startTime": "2024-11-15 08:00"})
        assert raw.category is EventCategory.OTHER
        assert raw.source_category == "Shifting"
        assert not raw.category_recognised

    def test_explicit_other_is_recognised(self):
        raw = RawEvent.model_validate({"event": "x", "category": "Other"})
        assert raw.category_recognised

    def test_missing_status_defaults(self):
        raw = RawEvent.model_validate({"event": "x", "status": None})
        assert raw.status == "Completed"


class TestLoading:

    def test_malformed_records_are_skipped(self):
        events = load_raw_events([
            {"event": "", "startTime": "2024-11-15 08:00"},
            {"event": "bad time", "startTime": "yesterday-ish"},
            "not a record",
            {"event": "ok", "startTime": "2024-11-15 08:00"},
        ])
        assert [e.label for e in events] == ["ok"]

    def test_missing_start_is_kept_for_normaliser(self):
        raw = load_raw_events([{"event": "no start"}])
        assert len(raw) == 1
        assert raw[0].start is None

    def test_sof_envelope(self):
        sof = StatementOfFacts.from_payload({
            "vesselName": "MV TEST",
            "portOfCall": "Durban",
            "extractionConfidence": 90,
            "events": [{"event": "NOR Tendered", "category": "Other", "startTime": "2024-11-15 10:30"}],
        })
        assert sof.vessel_name == "MV TEST"
        assert sof.header() == {"vessel_name": "MV TEST", "port_of_call": "Durban", "extraction_confidence": 90.0}
        assert len(sof.events) == 1

    def test_bare_event_list(self):
        sof = StatementOfFacts.from_payload([{"event": "a", "startTime": "2024-11-15 10:30"}])
        assert sof.vessel_name is None
        assert len(sof.events) == 1

    @pytest.mark.parametrize("events", [5, "NOR Tendered", {"event": "a"}, None])
    def test_non_list_events_field_is_empty(self, events):
        sof = StatementOfFacts.from_payload({"vesselName": "MV TEST", "events": events})
        assert sof.events == []
        assert sof.vessel_name == "MV TEST"
