"""
Repository for upload queue lifecycle transitions.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from db.models.file_processing_queue import FileProcessingQueue, QueueStatus


class FileQueueRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_entry(self, queue_id: uuid.UUID) -> FileProcessingQueue | None:
        return self._session.get(FileProcessingQueue, queue_id)

    def mark_processing(self, *, queue_id: uuid.UUID) -> FileProcessingQueue | None:
        entry = self.get_entry(queue_id)
        if entry is None:
            return None
        entry.status = QueueStatus.PROCESSING
        entry.processing_started_at = datetime.now(timezone.utc)
        entry.processing_completed_at = None
        entry.error_log = None
        return entry

    def mark_parsed(
        self,
        *,
        queue_id: uuid.UUID,
        extracted_data: dict[str, Any],
        records_extracted: int,
        warnings: list[str],
        state_code: str | None = None,
        data_import_id: uuid.UUID | None = None,
    ) -> FileProcessingQueue | None:
        entry = self.get_entry(queue_id)
        if entry is None:
            return None
        entry.status = QueueStatus.PARSED
        entry.extracted_data = extracted_data
        entry.records_extracted = records_extracted
        entry.processing_completed_at = datetime.now(timezone.utc)
        entry.error_log = list(warnings) if warnings else None
        if state_code is not None:
            entry.state_code = state_code
        if data_import_id is not None:
            entry.data_import_id = data_import_id
        return entry

    def mark_failed(self, *, queue_id: uuid.UUID, error_log: list[str]) -> FileProcessingQueue | None:
        entry = self.get_entry(queue_id)
        if entry is None:
            return None
        entry.status = QueueStatus.FAILED
        entry.error_log = list(error_log)
        entry.processing_completed_at = datetime.now(timezone.utc)
        return entry

    def claim_for_import(self, *, queue_id: uuid.UUID) -> bool:
        """
        Move ``parsed`` -> ``processing`` in a single conditional UPDATE.

        Returns False when another caller already moved the entry on.
        """

        stmt = (
            update(FileProcessingQueue)
            .where(
                FileProcessingQueue.id == queue_id,
                FileProcessingQueue.status == QueueStatus.PARSED,
            )
            .values(status=QueueStatus.PROCESSING, processing_started_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        result = self._session.execute(stmt)
        return result.rowcount == 1

    def restore_parsed(self, *, queue_id: uuid.UUID) -> None:
        stmt = (
            update(FileProcessingQueue)
            .where(
                FileProcessingQueue.id == queue_id,
                FileProcessingQueue.status == QueueStatus.PROCESSING,
            )
            .values(status=QueueStatus.PARSED)
            .execution_options(synchronize_session="fetch")
        )
        self._session.execute(stmt)

    def mark_imported(self, *, queue_id: uuid.UUID, records_imported: int) -> FileProcessingQueue | None:
        entry = self.get_entry(queue_id)
        if entry is None:
            return None
        now = datetime.now(timezone.utc)
        entry.status = QueueStatus.IMPORTED
        entry.records_imported = records_imported
        entry.imported_at = now
        entry.processing_completed_at = now
        return entry

    def set_pending_audit_log(self, *, queue_id: uuid.UUID, payload: dict[str, Any]) -> FileProcessingQueue | None:
        entry = self.get_entry(queue_id)
        if entry is None:
            return None
        # Reassign so the JSONB column is flagged dirty.
        entry.queue_metadata = {**(entry.queue_metadata or {}), "pending_audit_log": payload}
        return entry
