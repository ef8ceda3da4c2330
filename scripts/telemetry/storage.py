"""
File storage for built pings.

One JSONL file per ping type under <data_directory>/pings. Each line holds
one ping (TelemetryPing.to_dict()). The file is trimmed to the configured
maximum number of pings per type, dropping the oldest first.
"""

import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from metrics.jsonl_utils import JSONLReader, JSONLWriter

from .config import TelemetryConfiguration
from .ping import TelemetryPing

# processor(document_id, url_path, payload) -> True to remove the ping
PingProcessor = Callable[[str, str, Dict], bool]


class JSONLPingStorage:
    """Stores pings as JSONL and hands them back for upload."""

    def __init__(self, configuration: TelemetryConfiguration, directory: Optional[Path] = None):
        """
        Initialize storage.

        Args:
            configuration: Telemetry configuration (limits, data directory)
            directory: Override for the storage directory
        """
        self.configuration = configuration
        self.directory = Path(directory) if directory else configuration.data_path / "pings"
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, ping_type: str) -> Path:
        return self.directory / f"{ping_type}.jsonl"

    def store(self, ping: TelemetryPing):
        """
        Append a ping to its type's file.

        Errors propagate to the caller.
        """
        path = self._path(ping.ping_type)
        writer = JSONLWriter(path)

        with self._lock:
            writer.append(ping.to_dict())

            entries = JSONLReader.read_log(path)
            limit = self.configuration.maximum_pings_per_type
            if len(entries) > limit:
                writer.rewrite(entries[-limit:])

    def count_stored_pings(self, ping_type: str) -> int:
        return len(JSONLReader.read_log(self._path(ping_type)))

    def process(self, ping_type: str, processor: PingProcessor) -> bool:
        """
        Pass every stored ping of a type to processor, oldest first.

        Pings the processor returns True for are removed; processing stops
        at the first ping it returns False for, keeping that one and the
        rest.

        Args:
            ping_type: Ping type to process
            processor: Callable(document_id, url_path, payload) -> bool

        Returns:
            True if every stored ping was processed
        """
        path = self._path(ping_type)

        with self._lock:
            entries = JSONLReader.read_log(path)
            if not entries:
                return True

            processed = 0
            for entry in entries:
                ping = TelemetryPing.from_dict(entry)
                if not processor(ping.document_id, ping.url_path, ping.payload):
                    break
                processed += 1

            if processed:
                JSONLWriter(path).rewrite(entries[processed:])

            return processed == len(entries)
