"""
JSONL utilities for reading and writing ping files.

Provides locked JSONL reading/writing with error handling. One JSON
document per line; malformed lines are reported and skipped.
"""

import fcntl
import json
import os
import sys
from pathlib import Path
from typing import Callable, List


class JSONLReader:
    """Read and filter JSONL files with error handling."""

    @staticmethod
    def read_log(
        path: Path,
        filter_fn: Callable[[dict], bool] = None
    ) -> List[dict]:
        """
        Read JSONL with optional filtering.

        Args:
            path: Path to JSONL file
            filter_fn: Optional filter function (entry) -> bool

        Returns:
            List of dict entries, in file order
        """
        path = Path(path)
        if not path.exists():
            return []

        entries = []
        with open(path, 'r') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                lines = f.readlines()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        for line_num, line in enumerate(lines, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as e:
                print(f"Warning: Malformed JSON at {path}:{line_num}: {e}",
                      file=sys.stderr)
                continue

            if filter_fn and not filter_fn(entry):
                continue

            entries.append(entry)

        return entries


class JSONLWriter:
    """Thread-safe JSONL writer with file locking."""

    def __init__(self, path: Path):
        """
        Initialize writer.

        Args:
            path: Path to JSONL file
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, data: dict):
        """
        Atomically append entry to JSONL file.

        Args:
            data: Dictionary to append as JSON line
        """
        self.append_batch([data])

    def append_batch(self, data_list: List[dict]):
        """
        Atomically append multiple entries.

        Args:
            data_list: List of dictionaries to append
        """
        if not data_list:
            return

        with open(self.path, 'a') as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                for data in data_list:
                    f.write(json.dumps(data, ensure_ascii=False, default=str) + '\n')
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def rewrite(self, data_list: List[dict]):
        """
        Replace the file contents with the given entries.

        Writes to a sibling temp file and renames it over the original, so
        readers see either the old or the new contents.

        Args:
            data_list: Entries to keep, in order
        """
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        with open(tmp_path, 'w') as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                for data in data_list:
                    f.write(json.dumps(data, ensure_ascii=False, default=str) + '\n')
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(tmp_path, self.path)
