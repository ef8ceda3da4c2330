"""
Exceptions raised by the telemetry orchestrator.

Lifecycle misuse and missing builder registrations are programming errors
and always surface to the caller; policy no-ops (collection or upload
disabled, a builder not ready to build) never raise.
"""


class TelemetryError(RuntimeError):
    """Base class for telemetry orchestration errors."""


class AlreadyInitializedError(TelemetryError):
    """initialize() called while the subsystem is already running."""

    def __init__(self):
        super().__init__("Telemetry subsystem can only be initialized once!")


class NotInitializedError(TelemetryError):
    """Operation attempted before initialize() or after shutdown()."""

    def __init__(self, message: str = "Telemetry subsystem not initialized!"):
        super().__init__(message)


class MissingPingBuilderError(TelemetryError):
    """A ping builder type required by the operation is not registered."""

    def __init__(self, *ping_types: str):
        self.ping_types = ping_types
        names = " or ".join(repr(t) for t in ping_types)
        super().__init__(f"This configuration does not contain a {names} ping builder")


class ExecutorShutdownError(TelemetryError):
    """Work submitted to an executor that no longer accepts it."""

    def __init__(self):
        super().__init__("Executor has been shut down and does not accept new work")
