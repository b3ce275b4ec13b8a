from __future__ import annotations

import unittest
from typing import Any

from app.services.audit_writer import AuditWriter


class _FlakySink:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self.written: list[dict[str, Any]] = []

    def __call__(self, payload: dict[str, Any]) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("sink down")
        self.written.append(payload)


class TestAuditWriter(unittest.TestCase):
    def setUp(self) -> None:
        self.sleeps: list[float] = []
        self.fallback_payloads: list[dict[str, Any]] = []
        self.writer = AuditWriter(max_attempts=3, backoff_initial_seconds=0.5, sleep=self.sleeps.append)
        self.payload = {"action": "lab_data_imported", "entity_type": "file_processing_queue", "entity_id": "q-1"}

    def test_backoff_doubles(self) -> None:
        self.assertEqual([self.writer.backoff_for(n) for n in (1, 2, 3)], [0.5, 1.0, 2.0])

    def test_first_attempt_success(self) -> None:
        sink = _FlakySink(failures=0)
        self.assertTrue(self.writer.write(self.payload, sink=sink, fallback=self.fallback_payloads.append))
        self.assertEqual(self.sleeps, [])
        self.assertEqual(sink.written, [self.payload])

    def test_exhausted_retries_use_fallback(self) -> None:
        sink = _FlakySink(failures=5)
        result = self.writer.write(self.payload, sink=sink, fallback=self.fallback_payloads.append)
        self.assertFalse(result)
        self.assertEqual(sink.calls, 3)
        self.assertEqual(self.sleeps, [0.5, 1.0])
        self.assertEqual(self.fallback_payloads, [self.payload])

    def test_fallback_failure_does_not_raise(self) -> None:
        def broken_fallback(_: dict[str, Any]) -> None:
            raise RuntimeError("queue row locked")

        result = self.writer.write(self.payload, sink=_FlakySink(failures=3), fallback=broken_fallback)
        self.assertFalse(result)


if __name__ == "__main__":
    unittest.main()
