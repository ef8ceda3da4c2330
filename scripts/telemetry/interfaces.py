"""
Collaborator contracts the orchestrator depends on.

Storage persists built pings, the scheduler decides when stored pings get
uploaded, and the client performs the upload. The orchestrator only ever
calls store() and schedule_upload(); the client is held for callers.
"""

from typing import Any, Protocol

from .config import TelemetryConfiguration
from .event import TelemetryEventHandler
from .ping import TelemetryPing


class TelemetryStorage(Protocol):
    def store(self, ping: TelemetryPing) -> None:
        ...


class TelemetryScheduler(Protocol):
    def schedule_upload(self, configuration: TelemetryConfiguration) -> None:
        ...


class TelemetryClient(Protocol):
    def upload_ping(self, configuration: TelemetryConfiguration, url_path: str, serialized_ping: Any) -> bool:
        ...


__all__ = [
    'TelemetryStorage',
    'TelemetryScheduler',
    'TelemetryClient',
    'TelemetryEventHandler',
]
