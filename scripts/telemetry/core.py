"""
Telemetry orchestrator.

Application threads call in synchronously; guard checks (initialized?
collection/upload enabled? required builder registered?) run on the
calling thread and raise immediately. Anything touching builder state,
storage or the scheduler is submitted to a single SerialExecutor, so all
measurement mutation happens on one thread, in submission order.

Usage:
    from telemetry import core

    telemetry = core.initialize(configuration, storage, client, scheduler)
    telemetry.add_ping_builder(TelemetryMobileEventPingBuilder(configuration))

    core.record(TelemetryEvent.create("action", "click", "button"))
    ...
    core.shutdown()
"""

import sys
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import TelemetryConfiguration
from .errors import (
    AlreadyInitializedError,
    ExecutorShutdownError,
    MissingPingBuilderError,
    NotInitializedError,
)
from .event import HandlerDecision
from .executor import SerialExecutor
from .ping import EVENT_PING_TYPES, TelemetryCorePingBuilder, TelemetryPingBuilder

DEFAULT_SHUTDOWN_TIMEOUT = 10.0


class LifecycleState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class PingBuilderRegistry:
    """Ping builders keyed by type; last registration for a type wins."""

    def __init__(self):
        self._builders: Dict[str, TelemetryPingBuilder] = {}
        self._lock = threading.Lock()

    def add(self, builder: TelemetryPingBuilder):
        with self._lock:
            self._builders[builder.type] = builder

    def get(self, ping_type: str) -> Optional[TelemetryPingBuilder]:
        with self._lock:
            return self._builders.get(ping_type)

    def require(self, *ping_types: str) -> TelemetryPingBuilder:
        """
        Return the first registered builder among ping_types.

        Raises:
            MissingPingBuilderError: if none of them is registered
        """
        with self._lock:
            for ping_type in ping_types:
                builder = self._builders.get(ping_type)
                if builder is not None:
                    return builder
        raise MissingPingBuilderError(*ping_types)

    def builders(self) -> List[TelemetryPingBuilder]:
        with self._lock:
            return list(self._builders.values())

    def __contains__(self, ping_type: str) -> bool:
        with self._lock:
            return ping_type in self._builders

    def __len__(self) -> int:
        with self._lock:
            return len(self._builders)


class Telemetry:
    """
    Handle to an initialized telemetry subsystem.

    Obtain one from TelemetryHolder.initialize() or get(); a handle becomes
    unusable once its holder is shut down.
    """

    def __init__(
        self,
        configuration: TelemetryConfiguration,
        storage,
        client,
        scheduler,
        event_handler=None,
        on_error: Optional[Callable[[BaseException], None]] = None
    ):
        self._configuration = configuration
        self._storage = storage
        self._client = client
        self._scheduler = scheduler
        self._event_handler = event_handler
        self._registry = PingBuilderRegistry()
        self._executor = SerialExecutor(on_error=on_error)
        self._active = True

    # Accessors

    @property
    def configuration(self) -> TelemetryConfiguration:
        return self._configuration

    @property
    def storage(self):
        return self._storage

    @property
    def client(self):
        return self._client

    @property
    def scheduler(self):
        return self._scheduler

    @property
    def executor(self) -> SerialExecutor:
        return self._executor

    @property
    def active(self) -> bool:
        return self._active

    # Guards

    def _ensure_active(self):
        if not self._active:
            raise NotInitializedError("Telemetry subsystem has been shut down!")

    def _submit(self, fn, *args):
        try:
            self._executor.submit(fn, *args)
        except ExecutorShutdownError as e:
            raise NotInitializedError("Telemetry subsystem has been shut down!") from e

    def _core_builder(self) -> TelemetryCorePingBuilder:
        return self._registry.require(TelemetryCorePingBuilder.TYPE)

    # Ping builders

    def add_ping_builder(self, builder: TelemetryPingBuilder) -> "Telemetry":
        self._ensure_active()
        self._registry.add(builder)
        return self

    def get_builders(self) -> List[TelemetryPingBuilder]:
        self._ensure_active()
        return self._registry.builders()

    def queue_ping(self, ping_type: str) -> "Telemetry":
        """
        Build and store a ping of the given type, if its builder is ready.

        Raises:
            MissingPingBuilderError: if no builder of that type is registered
        """
        self._ensure_active()
        if not self._configuration.collection_enabled:
            return self

        self._registry.require(ping_type)
        self._submit_build(ping_type)
        return self

    def _submit_build(self, ping_type: str):
        # No collection check: callers already passed it
        self._submit(self._build_and_store, ping_type)

    def _build_and_store(self, ping_type: str):
        builder = self._registry.require(ping_type)

        if not builder.can_build():
            # Not enough data collected yet
            return

        ping = builder.build()
        self._storage.store(ping)

    # Events

    def record_event(self, event) -> "Telemetry":
        """
        Route an event through the application handler, then batch it.

        The handler only decides whether default handling applies;
        HandlerDecision.SUPPRESS drops the event here.

        Raises:
            MissingPingBuilderError: if no events ping builder is registered
        """
        self._ensure_active()

        if self._event_handler is not None:
            decision = self._event_handler.handle_event(event)
            if not isinstance(decision, HandlerDecision):
                raise TypeError(
                    f"Event handler must return a HandlerDecision, got {decision!r}"
                )
            if decision is HandlerDecision.SUPPRESS:
                return self

        self._queue_event(event)
        return self

    def _queue_event(self, event):
        if not self._configuration.collection_enabled:
            return

        self._registry.require(*EVENT_PING_TYPES)
        self._submit(self._batch_event, event)

    def _batch_event(self, event):
        # The mobile events type replaced the legacy type; prefer it
        builder = self._registry.require(*EVENT_PING_TYPES)

        measurement = builder.events_measurement
        measurement.add(event)
        if measurement.event_count >= self._configuration.max_events_per_ping:
            self._submit_build(builder.type)

    # Upload

    def schedule_upload(self) -> "Telemetry":
        self._ensure_active()
        if not self._configuration.upload_enabled:
            return self

        self._submit(self._scheduler.schedule_upload, self._configuration)
        return self

    # Sessions and searches

    def record_session_start(self) -> "Telemetry":
        self._ensure_active()
        if not self._configuration.collection_enabled:
            return self

        builder = self._core_builder()
        self._submit(self._start_session, builder, time.monotonic())
        return self

    @staticmethod
    def _start_session(builder: TelemetryCorePingBuilder, timestamp: float):
        # Every start counts, even if the duration measurement ignores it
        builder.session_count_measurement.count_session()
        if not builder.session_duration_measurement.record_session_start(timestamp):
            print("Warning: Session start recorded while a session is active; keeping the earlier start",
                  file=sys.stderr)

    def record_session_end(self) -> "Telemetry":
        self._ensure_active()
        if not self._configuration.collection_enabled:
            return self

        builder = self._core_builder()
        self._submit(self._end_session, builder, time.monotonic())
        return self

    @staticmethod
    def _end_session(builder: TelemetryCorePingBuilder, timestamp: float):
        if not builder.session_duration_measurement.record_session_end(timestamp):
            print("Warning: Session end recorded without a session start; ignoring",
                  file=sys.stderr)

    def record_search(self, location: str, identifier: str) -> "Telemetry":
        """
        Record a search for the given location and search engine identifier.

        Common locations:
            actionbar:  typed into the url bar, default engine used
            listitem:   secondary engine picked from the engine list
            suggestion: a search suggestion (or the main engine row) clicked
        """
        self._ensure_active()
        if not self._configuration.collection_enabled:
            return self

        builder = self._core_builder()
        self._submit(builder.searches_measurement.record_search, location, identifier)
        return self

    def set_default_search_provider(self, provider) -> "Telemetry":
        self._ensure_active()
        builder = self._core_builder()
        self._submit(builder.default_search_measurement.set_default_search_engine_provider, provider)
        return self

    # Draining

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until all submitted work has run. Mostly useful in tests."""
        return self._executor.flush(timeout)

    def _shutdown(self, timeout: Optional[float]) -> bool:
        self._active = False
        drained = self._executor.shutdown(wait=True, timeout=timeout)
        if not drained:
            # Queued tasks still reference our state; leave it to them
            print(f"Warning: Telemetry worker did not drain cleanly (timeout {timeout}s)",
                  file=sys.stderr)
            return False

        self._configuration = None
        self._storage = None
        self._client = None
        self._scheduler = None
        self._event_handler = None
        self._registry = PingBuilderRegistry()
        return True


class TelemetryHolder:
    """
    Owns the lifecycle of one Telemetry instance.

    UNINITIALIZED -> initialize() -> INITIALIZED -> shutdown() -> UNINITIALIZED
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = LifecycleState.UNINITIALIZED
        self._telemetry: Optional[Telemetry] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    def initialize(
        self,
        configuration: TelemetryConfiguration,
        storage,
        client,
        scheduler,
        event_handler=None,
        on_error: Optional[Callable[[BaseException], None]] = None
    ) -> Telemetry:
        """
        Start the subsystem.

        Raises:
            AlreadyInitializedError: if called again before shutdown()
        """
        with self._lock:
            if self._state is LifecycleState.INITIALIZED:
                raise AlreadyInitializedError()

            self._telemetry = Telemetry(
                configuration,
                storage,
                client,
                scheduler,
                event_handler=event_handler,
                on_error=on_error,
            )
            self._state = LifecycleState.INITIALIZED
            return self._telemetry

    def get(self) -> Telemetry:
        """
        Raises:
            NotInitializedError: if not initialized
        """
        telemetry = self._telemetry
        if telemetry is None:
            raise NotInitializedError()
        return telemetry

    def record(self, event):
        """Record an event; silently dropped when not initialized."""
        telemetry = self._telemetry
        if telemetry is None:
            return

        try:
            telemetry.record_event(event)
        except NotInitializedError:
            # Shut down between the check and the call
            return

    def shutdown(self, timeout: Optional[float] = DEFAULT_SHUTDOWN_TIMEOUT) -> bool:
        """
        Stop accepting work, drain what is queued, then release everything.

        Returns:
            False if the worker did not drain within timeout or died first
        """
        with self._lock:
            telemetry = self._telemetry
            if telemetry is None:
                return True

            self._telemetry = None
            try:
                return telemetry._shutdown(timeout)
            finally:
                self._state = LifecycleState.UNINITIALIZED


# Process-wide holder for import
_holder = TelemetryHolder()


def get_holder() -> TelemetryHolder:
    return _holder


def initialize(
    configuration: TelemetryConfiguration,
    storage,
    client,
    scheduler,
    event_handler=None,
    on_error: Optional[Callable[[BaseException], None]] = None
) -> Telemetry:
    return _holder.initialize(
        configuration, storage, client, scheduler,
        event_handler=event_handler, on_error=on_error,
    )


def get() -> Telemetry:
    return _holder.get()


def record(event):
    _holder.record(event)


def shutdown(timeout: Optional[float] = DEFAULT_SHUTDOWN_TIMEOUT) -> bool:
    return _holder.shutdown(timeout)
