"""
Repository for data_imports tracking rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from db.models.data_import import DataImport, DataImportStatus
from db.models.file_processing_queue import FileCategory


class DataImportRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_parsing(
        self,
        *,
        organization_id: uuid.UUID | None,
        file_name: str,
        imported_by: uuid.UUID | None,
        metadata: dict[str, Any],
    ) -> DataImport:
        record = DataImport(
            organization_id=organization_id,
            file_name=file_name,
            file_category=FileCategory.LAB_DATA,
            source_system="lab_edd",
            import_status=DataImportStatus.PARSING,
            imported_by=imported_by,
            record_count=0,
            import_metadata=dict(metadata),
            can_rollback=True,
            import_started_at=datetime.now(timezone.utc),
        )
        self._session.add(record)
        self._session.flush()
        return record

    def get(self, import_id: uuid.UUID) -> DataImport | None:
        return self._session.get(DataImport, import_id)

    def _merge_metadata(self, record: DataImport, metadata: dict[str, Any] | None) -> None:
        if metadata:
            record.import_metadata = {**(record.import_metadata or {}), **metadata}

    def mark_parsed(
        self,
        *,
        import_id: uuid.UUID,
        record_count: int,
        metadata: dict[str, Any] | None = None,
    ) -> DataImport | None:
        record = self.get(import_id)
        if record is None:
            return None
        record.import_status = DataImportStatus.PARSED
        record.record_count = record_count
        self._merge_metadata(record, metadata)
        return record

    def mark_failed(self, *, import_id: uuid.UUID, error_log: list[str]) -> DataImport | None:
        record = self.get(import_id)
        if record is None:
            return None
        record.import_status = DataImportStatus.FAILED
        record.error_log = list(error_log)
        record.import_completed_at = datetime.now(timezone.utc)
        return record

    def mark_imported(
        self,
        *,
        import_id: uuid.UUID,
        record_count: int,
        metadata: dict[str, Any] | None = None,
    ) -> DataImport | None:
        record = self.get(import_id)
        if record is None:
            return None
        record.import_status = DataImportStatus.IMPORTED
        record.record_count = record_count
        record.import_completed_at = datetime.now(timezone.utc)
        self._merge_metadata(record, metadata)
        return record
