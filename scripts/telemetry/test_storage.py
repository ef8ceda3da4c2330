#!/usr/bin/env python3
"""
Tests for JSONL ping storage.

Run with: python3 -m pytest scripts/telemetry/test_storage.py -v
"""

import json
import sys
import tempfile
import unittest
from pathlib import Path

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from telemetry.config import TelemetryConfiguration
from telemetry.ping import TelemetryPing
from telemetry.storage import JSONLPingStorage


def make_ping(document_id, ping_type="core"):
    return TelemetryPing(
        ping_type=ping_type,
        document_id=document_id,
        url_path=f"/submit/telemetry/{document_id}/{ping_type}",
        payload={"seq": document_id},
    )


class TestJSONLPingStorage(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.configuration = TelemetryConfiguration(
            data_directory=self.temp_dir.name,
            maximum_pings_per_type=3,
        )
        self.storage = JSONLPingStorage(self.configuration)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_store_writes_one_line_per_ping(self):
        self.storage.store(make_ping("a"))
        self.storage.store(make_ping("b"))

        path = Path(self.temp_dir.name) / "pings" / "core.jsonl"
        lines = [json.loads(line) for line in path.read_text().splitlines()]
        self.assertEqual([entry["document_id"] for entry in lines], ["a", "b"])
        self.assertEqual(self.storage.count_stored_pings("core"), 2)

    def test_types_are_stored_separately(self):
        self.storage.store(make_ping("a", "core"))
        self.storage.store(make_ping("b", "mobile-event"))

        self.assertEqual(self.storage.count_stored_pings("core"), 1)
        self.assertEqual(self.storage.count_stored_pings("mobile-event"), 1)
        self.assertEqual(self.storage.count_stored_pings("focus-event"), 0)

    def test_oldest_pings_trimmed(self):
        for document_id in "abcde":
            self.storage.store(make_ping(document_id))

        seen = []
        self.storage.process("core", lambda doc_id, url, payload: seen.append(doc_id) or True)

        self.assertEqual(seen, ["c", "d", "e"])

    def test_process_removes_accepted_pings(self):
        for document_id in "abc":
            self.storage.store(make_ping(document_id))

        self.assertTrue(self.storage.process("core", lambda *args: True))
        self.assertEqual(self.storage.count_stored_pings("core"), 0)

    def test_process_stops_at_first_rejection(self):
        for document_id in "abc":
            self.storage.store(make_ping(document_id))

        def upload(document_id, url_path, payload):
            return document_id != "b"

        self.assertFalse(self.storage.process("core", upload))

        remaining = []
        self.storage.process("core", lambda doc_id, url, payload: remaining.append(doc_id) or True)
        self.assertEqual(remaining, ["b", "c"])

    def test_process_empty_type(self):
        self.assertTrue(self.storage.process("core", lambda *args: False))

    def test_malformed_lines_are_skipped(self):
        self.storage.store(make_ping("a"))
        path = Path(self.temp_dir.name) / "pings" / "core.jsonl"
        with open(path, 'a') as f:
            f.write("{not json\n")
        self.storage.store(make_ping("b"))

        self.assertEqual(self.storage.count_stored_pings("core"), 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
