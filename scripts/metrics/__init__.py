"""
Measurements and file utilities for telemetry pings.

This package provides the building blocks the ping builders use:
- measurements: per-field accumulators flushed into ping payloads
- jsonl_utils: JSONL file reading/writing with locking
"""

from .jsonl_utils import JSONLReader, JSONLWriter
from .measurements import (
    TelemetryMeasurement,
    StaticMeasurement,
    EventsMeasurement,
    SessionCountMeasurement,
    SessionDurationMeasurement,
    SearchesMeasurement,
    DefaultSearchMeasurement,
    SequenceMeasurement,
    CreatedDateMeasurement,
    TimezoneOffsetMeasurement,
)

__all__ = [
    'JSONLReader',
    'JSONLWriter',
    'TelemetryMeasurement',
    'StaticMeasurement',
    'EventsMeasurement',
    'SessionCountMeasurement',
    'SessionDurationMeasurement',
    'SearchesMeasurement',
    'DefaultSearchMeasurement',
    'SequenceMeasurement',
    'CreatedDateMeasurement',
    'TimezoneOffsetMeasurement',
]

__version__ = '1.0.0'
