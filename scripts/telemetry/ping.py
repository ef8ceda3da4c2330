"""
Pings and ping builders.

A ping builder owns a set of measurements. build() flushes every
measurement into a payload dict, which resets the accumulators, and wraps
the payload in a TelemetryPing addressed by a fresh document id.
"""

import platform
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List

from metrics.measurements import (
    CreatedDateMeasurement,
    DefaultSearchMeasurement,
    EventsMeasurement,
    SearchesMeasurement,
    SequenceMeasurement,
    SessionCountMeasurement,
    SessionDurationMeasurement,
    StaticMeasurement,
    TelemetryMeasurement,
    TimezoneOffsetMeasurement,
)

from .config import TelemetryConfiguration


@dataclass
class TelemetryPing:
    """A built ping, ready to be stored."""
    ping_type: str
    document_id: str
    url_path: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ping_type": self.ping_type,
            "document_id": self.document_id,
            "url_path": self.url_path,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TelemetryPing":
        return cls(
            ping_type=data["ping_type"],
            document_id=data["document_id"],
            url_path=data["url_path"],
            payload=data.get("payload", {}),
        )


class TelemetryPingBuilder:
    """
    Base ping builder.

    Subclasses register their measurements in __init__ and override
    can_build() when a ping should wait for enough data.
    """

    TYPE = None

    def __init__(self, configuration: TelemetryConfiguration, ping_type: str, version: int):
        self.configuration = configuration
        self._type = ping_type
        self._measurements: List[TelemetryMeasurement] = []

        self.add_measurement(StaticMeasurement("v", version))
        self.add_measurement(SequenceMeasurement())
        self.add_measurement(CreatedDateMeasurement())
        self.add_measurement(TimezoneOffsetMeasurement())
        self.add_measurement(StaticMeasurement("os", platform.system()))
        self.add_measurement(StaticMeasurement("osversion", platform.release()))

    @property
    def type(self) -> str:
        return self._type

    def get_type(self) -> str:
        return self._type

    def add_measurement(self, measurement: TelemetryMeasurement):
        self._measurements.append(measurement)

    @property
    def measurements(self) -> List[TelemetryMeasurement]:
        return list(self._measurements)

    def can_build(self) -> bool:
        """Whether enough data has been collected to build a ping."""
        return True

    def build(self) -> TelemetryPing:
        """
        Build a ping from the current measurements.

        Only call when can_build() is true. Every accumulating measurement
        is reset, but only once all values were read; if reading one
        raises, nothing is reset.
        """
        document_id = str(uuid.uuid4())
        payload = {m.field_name: m.value() for m in self._measurements}
        for m in self._measurements:
            m.reset()
        return TelemetryPing(
            ping_type=self._type,
            document_id=document_id,
            url_path=self.generate_url_path(document_id),
            payload=payload,
        )

    def generate_url_path(self, document_id: str) -> str:
        c = self.configuration
        return "/".join([
            "/submit/telemetry",
            document_id,
            self._type,
            c.app_name,
            c.app_version,
            c.update_channel,
            c.build_id,
        ])

    def __repr__(self):
        return f"{self.__class__.__name__}(type={self._type!r})"


class TelemetryCorePingBuilder(TelemetryPingBuilder):
    """Core ping: session count, session durations and search usage."""

    TYPE = "core"
    VERSION = 7

    def __init__(self, configuration: TelemetryConfiguration):
        super().__init__(configuration, self.TYPE, self.VERSION)

        self.session_count_measurement = SessionCountMeasurement()
        self.session_duration_measurement = SessionDurationMeasurement()
        self.searches_measurement = SearchesMeasurement()
        self.default_search_measurement = DefaultSearchMeasurement()

        self.add_measurement(self.session_count_measurement)
        self.add_measurement(self.session_duration_measurement)
        self.add_measurement(self.searches_measurement)
        self.add_measurement(self.default_search_measurement)


class _EventsPingBuilder(TelemetryPingBuilder):
    """Shared base for builders that batch events."""

    VERSION = 1

    def __init__(self, configuration: TelemetryConfiguration):
        super().__init__(configuration, self.TYPE, self.VERSION)
        self.events_measurement = EventsMeasurement()
        self.add_measurement(self.events_measurement)

    def can_build(self) -> bool:
        # A full batch is always buildable, whatever the upload minimum
        minimum = min(
            self.configuration.minimum_events_for_upload,
            self.configuration.max_events_per_ping,
        )
        return self.events_measurement.event_count >= minimum


class TelemetryEventPingBuilder(_EventsPingBuilder):
    """Legacy events ping."""

    TYPE = "focus-event"


class TelemetryMobileEventPingBuilder(_EventsPingBuilder):
    """Events ping; preferred over the legacy type when both are registered."""

    TYPE = "mobile-event"


# Checked in order when batching events
EVENT_PING_TYPES = (TelemetryMobileEventPingBuilder.TYPE, TelemetryEventPingBuilder.TYPE)
