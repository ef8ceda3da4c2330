"""
Measurements collected into telemetry pings.

Each measurement owns one payload field. Building a ping reads value()
from every measurement first and only then calls reset() on each, so a
failing measurement leaves all accumulators untouched. flush() does both
for a single measurement.
"""

import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional


class TelemetryMeasurement:
    """Base class for a single ping payload field."""

    def __init__(self, field_name: str):
        self.field_name = field_name

    def value(self) -> Any:
        """Return the measured value without changing state."""
        raise NotImplementedError

    def reset(self):
        """Start accumulating for the next ping."""

    def flush(self) -> Any:
        """Return the measured value and reset internal state."""
        value = self.value()
        self.reset()
        return value


class StaticMeasurement(TelemetryMeasurement):
    """Measurement that always reports the same value."""

    def __init__(self, field_name: str, value: Any):
        super().__init__(field_name)
        self._value = value

    def value(self) -> Any:
        return self._value


class EventsMeasurement(TelemetryMeasurement):
    """
    Accumulates recorded events until the next ping is built.

    Events exposing to_json() are serialized on flush; anything else is
    reported as-is.
    """

    def __init__(self):
        super().__init__("events")
        self._events: List[Any] = []

    def add(self, event: Any) -> "EventsMeasurement":
        self._events.append(event)
        return self

    @property
    def event_count(self) -> int:
        return len(self._events)

    def value(self) -> List[Any]:
        return [e.to_json() if hasattr(e, 'to_json') else e for e in self._events]

    def reset(self):
        self._events = []


class SessionCountMeasurement(TelemetryMeasurement):
    """Number of sessions started since the last ping."""

    def __init__(self):
        super().__init__("sessions")
        self._count = 0

    def count_session(self):
        self._count += 1

    @property
    def session_count(self) -> int:
        return self._count

    def value(self) -> int:
        return self._count

    def reset(self):
        self._count = 0


class SessionDurationMeasurement(TelemetryMeasurement):
    """
    Total duration of completed sessions, in whole seconds.

    Timestamps come from time.monotonic() unless the caller passes one in,
    which lets the orchestrator capture the time on the calling thread and
    apply it later.
    """

    def __init__(self):
        super().__init__("durations")
        self._session_start: Optional[float] = None
        self._total_seconds = 0.0

    @property
    def session_active(self) -> bool:
        return self._session_start is not None

    def record_session_start(self, timestamp: Optional[float] = None) -> bool:
        """
        Mark the start of a session.

        Returns:
            False if a session is already running (the call is ignored)
        """
        if self._session_start is not None:
            return False

        self._session_start = time.monotonic() if timestamp is None else timestamp
        return True

    def record_session_end(self, timestamp: Optional[float] = None) -> bool:
        """
        Mark the end of the running session and add its duration.

        Returns:
            False if no session was started
        """
        if self._session_start is None:
            return False

        end = time.monotonic() if timestamp is None else timestamp
        self._total_seconds += max(0.0, end - self._session_start)
        self._session_start = None
        return True

    def value(self) -> int:
        return int(round(self._total_seconds))

    def reset(self):
        self._total_seconds = 0.0


class SearchesMeasurement(TelemetryMeasurement):
    """Search counts keyed by "<engine identifier>.<location>"."""

    # Locations reported by browsers
    LOCATION_ACTIONBAR = "actionbar"
    LOCATION_SUGGESTION = "suggestion"
    LOCATION_LISTITEM = "listitem"

    def __init__(self):
        super().__init__("searches")
        self._counts: Dict[str, int] = {}

    def record_search(self, location: str, identifier: str):
        key = f"{identifier.lower()}.{location}"
        self._counts[key] = self._counts.get(key, 0) + 1

    def value(self) -> Dict[str, int]:
        return dict(self._counts)

    def reset(self):
        self._counts = {}


class DefaultSearchMeasurement(TelemetryMeasurement):
    """
    Identifier of the default search engine at the time the ping is built.

    The provider is either a zero-argument callable or an object with a
    get_default_search_engine_identifier() method.
    """

    def __init__(self):
        super().__init__("defaultSearch")
        self._provider = None

    def set_default_search_engine_provider(self, provider):
        self._provider = provider

    def value(self) -> Optional[str]:
        if self._provider is None:
            return None
        if hasattr(self._provider, 'get_default_search_engine_identifier'):
            return self._provider.get_default_search_engine_identifier()
        return self._provider()


class SequenceMeasurement(TelemetryMeasurement):
    """Running ping counter for one ping type; advances on every reset."""

    def __init__(self):
        super().__init__("seq")
        self._sequence = 0

    def value(self) -> int:
        return self._sequence

    def reset(self):
        self._sequence += 1


class CreatedDateMeasurement(TelemetryMeasurement):
    """Local creation date of the ping (YYYY-MM-DD)."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        super().__init__("created")
        self._clock = clock

    def value(self) -> str:
        return self._clock().strftime("%Y-%m-%d")


class TimezoneOffsetMeasurement(TelemetryMeasurement):
    """Local timezone offset from UTC in minutes."""

    def __init__(self):
        super().__init__("tz")

    def value(self) -> int:
        offset = datetime.now().astimezone().utcoffset()
        return int(offset.total_seconds() // 60) if offset else 0
