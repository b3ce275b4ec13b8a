"""
app/services/audit_writer.py

Audit trail writes with bounded retry and an on-record fallback.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

AuditSink = Callable[[dict[str, Any]], None]
AuditFallback = Callable[[dict[str, Any]], None]


class AuditWriter:
    """
    Write one audit payload through ``sink``, retrying with exponential backoff.

    When every attempt fails the payload is handed to ``fallback`` so it can be
    stored for later reconciliation. Neither path raises: audit failures never
    undo the operation being audited.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        backoff_initial_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._max_attempts = max(1, max_attempts)
        self._backoff_initial_seconds = max(0.0, backoff_initial_seconds)
        self._sleep = sleep

    def backoff_for(self, attempt: int) -> float:
        return self._backoff_initial_seconds * (2 ** (attempt - 1))

    def write(self, payload: dict[str, Any], *, sink: AuditSink, fallback: AuditFallback) -> bool:
        """
        Returns True when the sink accepted the payload, False when the
        fallback was used (or also failed).
        """

        for attempt in range(1, self._max_attempts + 1):
            try:
                sink(payload)
                if attempt > 1:
                    logger.info("Audit log written on attempt %d/%d", attempt, self._max_attempts)
                return True
            except Exception as exc:
                logger.warning(
                    "Audit log write failed attempt=%d/%d action=%s error=%s",
                    attempt,
                    self._max_attempts,
                    payload.get("action"),
                    exc,
                )
                if attempt < self._max_attempts:
                    self._sleep(self.backoff_for(attempt))

        try:
            fallback(payload)
            logger.warning(
                "Audit log stored as pending entity_type=%s entity_id=%s",
                payload.get("entity_type"),
                payload.get("entity_id"),
            )
        except Exception:
            logger.exception(
                "Audit fallback failed, audit payload lost entity_id=%s",
                payload.get("entity_id"),
            )
        return False
