"""
Event schema and event handler contract.

Events are opaque to the orchestrator: it routes them to the events
measurement without looking at their fields. The fields and limits here
describe the event ping payload.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

MAX_LENGTH_CATEGORY = 30
MAX_LENGTH_METHOD = 30
MAX_LENGTH_OBJECT = 30
MAX_LENGTH_VALUE = 80
MAX_EXTRA_KEYS = 10
MAX_LENGTH_EXTRA_KEY = 15
MAX_LENGTH_EXTRA_VALUE = 80

_PROCESS_START = time.monotonic()


def _elapsed_ms() -> int:
    return int((time.monotonic() - _PROCESS_START) * 1000)


def _check_length(name: str, value: str, limit: int):
    if len(value) > limit:
        raise ValueError(f"{name} length may not exceed {limit} characters: {value!r}")


@dataclass
class TelemetryEvent:
    """A single behavioral event (category, method, object, optional value)."""
    category: str
    method: str
    obj: str
    value: Optional[str] = None
    extras: Dict[str, str] = field(default_factory=dict)
    timestamp: int = field(default_factory=_elapsed_ms)

    def __post_init__(self):
        _check_length("Category", self.category, MAX_LENGTH_CATEGORY)
        _check_length("Method", self.method, MAX_LENGTH_METHOD)
        _check_length("Object", self.obj, MAX_LENGTH_OBJECT)
        if self.value is not None:
            _check_length("Value", self.value, MAX_LENGTH_VALUE)
        extras = self.extras
        self.extras = {}
        for key, value in extras.items():
            self.extra(key, value)

    @classmethod
    def create(
        cls,
        category: str,
        method: str,
        obj: str,
        value: Optional[str] = None
    ) -> "TelemetryEvent":
        """Create a new event timestamped now."""
        return cls(category=category, method=method, obj=obj, value=value)

    def extra(self, key: str, value: str) -> "TelemetryEvent":
        """Attach an extra key/value pair. Returns self for chaining."""
        if key not in self.extras and len(self.extras) >= MAX_EXTRA_KEYS:
            raise ValueError(f"Exceeding limit of {MAX_EXTRA_KEYS} extra keys")
        _check_length("Extra key", key, MAX_LENGTH_EXTRA_KEY)
        _check_length("Extra value", value, MAX_LENGTH_EXTRA_VALUE)
        self.extras[key] = value
        return self

    def to_json(self) -> List[Any]:
        """
        Serialize to the event ping array form.

        [timestamp, category, method, object, value?, extras?]; value is
        None when only extras are present.
        """
        data: List[Any] = [self.timestamp, self.category, self.method, self.obj]
        if self.value is not None or self.extras:
            data.append(self.value)
        if self.extras:
            data.append(dict(self.extras))
        return data

    def queue(self):
        """Record this event with the running telemetry instance."""
        from .core import record
        record(self)


class HandlerDecision(Enum):
    """What an application event handler wants done with an event."""
    ENQUEUE = "enqueue"    # apply default handling (batch into the events ping)
    SUPPRESS = "suppress"  # handler took care of it; drop


class TelemetryEventHandler(Protocol):
    """Application hook consulted before an event is batched."""

    def handle_event(self, event: Any) -> HandlerDecision:
        ...
