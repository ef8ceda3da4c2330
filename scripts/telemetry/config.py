"""
Telemetry configuration.

Provides an immutable per-session configuration with:
- JSON file loading with defaults
- Environment variable overrides
- Collection/upload enable flags and batching thresholds

Usage:
    from telemetry.config import TelemetryConfiguration

    configuration = TelemetryConfiguration.load()
    if configuration.collection_enabled:
        ...
"""

import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "telemetry_config.json"

_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")


def _convert(value: Any, field_type: type) -> Any:
    if field_type is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    if field_type is int:
        if isinstance(value, bool):
            raise TypeError(f"not an integer: {value!r}")
        return int(value)
    if field_type is str:
        if isinstance(value, (dict, list)):
            raise TypeError(f"not a string: {value!r}")
        return str(value)
    return value


@dataclass(frozen=True)
class TelemetryConfiguration:
    """Flags and thresholds read by every telemetry operation."""

    collection_enabled: bool = True
    upload_enabled: bool = True
    max_events_per_ping: int = 500
    minimum_events_for_upload: int = 3
    maximum_pings_per_type: int = 40
    app_name: str = "unknown"
    app_version: str = "0.0.0"
    update_channel: str = "release"
    build_id: str = "1"
    data_directory: str = "~/.telemetry"

    def __post_init__(self):
        if self.max_events_per_ping < 1:
            raise ValueError(
                f"max_events_per_ping must be at least 1, got {self.max_events_per_ping}"
            )
        if self.minimum_events_for_upload < 1:
            raise ValueError(
                f"minimum_events_for_upload must be at least 1, got {self.minimum_events_for_upload}"
            )
        if self.maximum_pings_per_type < 1:
            raise ValueError(
                f"maximum_pings_per_type must be at least 1, got {self.maximum_pings_per_type}"
            )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "TelemetryConfiguration":
        """
        Load configuration from file.

        Missing or unreadable files fall back to defaults. Environment
        variables override whatever the file says.

        Args:
            config_path: Path to telemetry_config.json (optional)

        Returns:
            TelemetryConfiguration instance
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        values: Dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path) as f:
                    values = json.load(f).get("telemetry", {})
            except Exception as e:
                print(f"Warning: Failed to load config from {config_path}: {e}",
                      file=sys.stderr)
                values = {}

        values = cls._coerce(values)
        values.update(cls._env_overrides())

        return cls(**values)

    @classmethod
    def _coerce(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        """Keep known fields, converted to their declared types; warn on the rest."""
        types = {f.name: f.type for f in dataclasses.fields(cls)}
        coerced: Dict[str, Any] = {}

        for key, value in values.items():
            field_type = types.get(key)
            if field_type is None:
                continue
            try:
                coerced[key] = _convert(value, field_type)
            except (TypeError, ValueError):
                print(f"Warning: Ignoring invalid config value for {key}: {value!r}",
                      file=sys.stderr)

        return coerced

    @staticmethod
    def _env_overrides() -> Dict[str, Any]:
        """
        Read overrides from the environment.

        TELEMETRY_COLLECTION_ENABLED=false
        TELEMETRY_UPLOAD_ENABLED=false
        TELEMETRY_MAX_EVENTS_PER_PING=100
        """
        overrides: Dict[str, Any] = {}

        if "TELEMETRY_COLLECTION_ENABLED" in os.environ:
            value = os.environ["TELEMETRY_COLLECTION_ENABLED"].lower()
            overrides["collection_enabled"] = value in _TRUE_VALUES

        if "TELEMETRY_UPLOAD_ENABLED" in os.environ:
            value = os.environ["TELEMETRY_UPLOAD_ENABLED"].lower()
            overrides["upload_enabled"] = value in _TRUE_VALUES

        if "TELEMETRY_MAX_EVENTS_PER_PING" in os.environ:
            value = os.environ["TELEMETRY_MAX_EVENTS_PER_PING"]
            try:
                overrides["max_events_per_ping"] = int(value)
            except ValueError:
                print(f"Warning: Ignoring invalid TELEMETRY_MAX_EVENTS_PER_PING: {value!r}",
                      file=sys.stderr)

        return overrides

    def with_overrides(self, **changes) -> "TelemetryConfiguration":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    @property
    def data_path(self) -> Path:
        """Data directory with ~ expanded."""
        return Path(self.data_directory).expanduser()

    def is_collection_enabled(self) -> bool:
        return self.collection_enabled

    def is_upload_enabled(self) -> bool:
        return self.upload_enabled

    def get_maximum_number_of_events_per_ping(self) -> int:
        return self.max_events_per_ping

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return dataclasses.asdict(self)
