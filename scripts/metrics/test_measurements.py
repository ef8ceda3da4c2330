#!/usr/bin/env python3
"""
Tests for ping measurements.

Run with: python3 -m pytest scripts/metrics/test_measurements.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from metrics.measurements import (
    CreatedDateMeasurement,
    DefaultSearchMeasurement,
    EventsMeasurement,
    SearchesMeasurement,
    SequenceMeasurement,
    SessionCountMeasurement,
    SessionDurationMeasurement,
    StaticMeasurement,
)


class FakeEvent:
    def __init__(self, name):
        self.name = name

    def to_json(self):
        return [0, "action", self.name, "button"]


def test_events_count_and_flush_resets():
    measurement = EventsMeasurement()
    measurement.add(FakeEvent("a")).add(FakeEvent("b"))

    assert measurement.event_count == 2
    assert measurement.flush() == [[0, "action", "a", "button"], [0, "action", "b", "button"]]
    assert measurement.event_count == 0
    assert measurement.flush() == []


def test_events_without_to_json_pass_through():
    measurement = EventsMeasurement()
    measurement.add({"raw": True})

    assert measurement.flush() == [{"raw": True}]


def test_session_count():
    measurement = SessionCountMeasurement()
    measurement.count_session()
    measurement.count_session()

    assert measurement.flush() == 2
    assert measurement.flush() == 0


def test_session_duration_accumulates_completed_sessions():
    measurement = SessionDurationMeasurement()

    assert measurement.record_session_start(100.0)
    assert measurement.record_session_end(130.4)
    assert measurement.record_session_start(200.0)
    assert measurement.record_session_end(210.0)

    assert measurement.flush() == 40
    assert measurement.flush() == 0


def test_value_reads_without_resetting():
    measurement = SearchesMeasurement()
    measurement.record_search("actionbar", "google")

    assert measurement.value() == {"google.actionbar": 1}
    assert measurement.value() == {"google.actionbar": 1}

    measurement.reset()
    assert measurement.value() == {}

    sequence = SequenceMeasurement()
    assert sequence.value() == 0
    assert sequence.value() == 0
    sequence.reset()
    assert sequence.value() == 1


def test_session_duration_rejects_invalid_transitions():
    measurement = SessionDurationMeasurement()

    assert not measurement.record_session_end(5.0)
    assert measurement.record_session_start(10.0)
    assert not measurement.record_session_start(11.0)
    assert measurement.session_active


def test_searches_keyed_by_engine_and_location():
    measurement = SearchesMeasurement()
    measurement.record_search(SearchesMeasurement.LOCATION_ACTIONBAR, "Google")
    measurement.record_search(SearchesMeasurement.LOCATION_ACTIONBAR, "google")
    measurement.record_search(SearchesMeasurement.LOCATION_LISTITEM, "bing")

    assert measurement.flush() == {"google.actionbar": 2, "bing.listitem": 1}
    assert measurement.flush() == {}


def test_default_search_provider_forms():
    measurement = DefaultSearchMeasurement()
    assert measurement.flush() is None

    measurement.set_default_search_engine_provider(lambda: "duckduckgo")
    assert measurement.flush() == "duckduckgo"

    class Provider:
        def get_default_search_engine_identifier(self):
            return "qwant"

    measurement.set_default_search_engine_provider(Provider())
    assert measurement.flush() == "qwant"


def test_sequence_increments_per_flush():
    measurement = SequenceMeasurement()
    assert [measurement.flush() for _ in range(3)] == [0, 1, 2]


def test_created_date_format():
    measurement = CreatedDateMeasurement(clock=lambda: datetime(2024, 3, 9, 15, 30))
    assert measurement.flush() == "2024-03-09"


def test_static_measurement():
    measurement = StaticMeasurement("v", 7)
    assert measurement.field_name == "v"
    assert measurement.flush() == 7
    assert measurement.flush() == 7


if __name__ == "__main__":
    import pytest
    sys.exit(pytest.main([__file__, "-v"]))
