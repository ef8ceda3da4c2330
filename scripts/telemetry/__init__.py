"""
Telemetry package.

Collects events into batched pings through a single ordered worker, stores
built pings and triggers upload scheduling. Provides the lifecycle holder,
ping builders, file storage and the collaborator contracts.
"""

from .config import TelemetryConfiguration
from .errors import (
    TelemetryError,
    AlreadyInitializedError,
    NotInitializedError,
    MissingPingBuilderError,
    ExecutorShutdownError,
)
from .event import TelemetryEvent, HandlerDecision, TelemetryEventHandler
from .executor import SerialExecutor
from .ping import (
    TelemetryPing,
    TelemetryPingBuilder,
    TelemetryCorePingBuilder,
    TelemetryEventPingBuilder,
    TelemetryMobileEventPingBuilder,
)
from .storage import JSONLPingStorage
from .interfaces import TelemetryStorage, TelemetryScheduler, TelemetryClient
from .core import (
    LifecycleState,
    PingBuilderRegistry,
    Telemetry,
    TelemetryHolder,
    initialize,
    get,
    record,
    shutdown,
    get_holder,
)

__all__ = [
    # Configuration
    'TelemetryConfiguration',
    # Errors
    'TelemetryError',
    'AlreadyInitializedError',
    'NotInitializedError',
    'MissingPingBuilderError',
    'ExecutorShutdownError',
    # Events
    'TelemetryEvent',
    'HandlerDecision',
    'TelemetryEventHandler',
    # Execution
    'SerialExecutor',
    # Pings
    'TelemetryPing',
    'TelemetryPingBuilder',
    'TelemetryCorePingBuilder',
    'TelemetryEventPingBuilder',
    'TelemetryMobileEventPingBuilder',
    # Collaborators
    'JSONLPingStorage',
    'TelemetryStorage',
    'TelemetryScheduler',
    'TelemetryClient',
    # Lifecycle
    'LifecycleState',
    'PingBuilderRegistry',
    'Telemetry',
    'TelemetryHolder',
    'initialize',
    'get',
    'record',
    'shutdown',
    'get_holder',
]

__version__ = '1.0.0'
