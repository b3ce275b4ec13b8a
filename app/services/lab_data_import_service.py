"""
app/services/lab_data_import_service.py

Commit an approved lab data extraction into sampling_events and lab_results.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app.config import LabDataImportSettings, get_lab_data_import_settings
from app.domain.caller import CallerIdentity
from app.domain.lab_data import (
    LAB_DATA_DOCUMENT_TYPE,
    ExtractedLabData,
    LabDataImportSummary,
    LabResultRow,
    ParsedRecord,
    SamplingEventRow,
)
from app.repositories.audit_log_repository import AuditLogRepository
from app.repositories.lab_data_repository import LabDataRepository
from app.services.audit_writer import AuditWriter
from app.services.lab_data_errors import (
    ImportBadRequestError,
    ImportConflictError,
    ImportForbiddenError,
    ImportNotFoundError,
    ImportRequestError,
    LabDataImportError,
)
from db.models.file_processing_queue import FileCategory, FileProcessingQueue, QueueStatus
from db.repositories.data_import_repository import DataImportRepository
from db.repositories.file_queue_repository import FileQueueRepository

logger = logging.getLogger(__name__)

MAX_TRACKED_IDS = 100
AUDIT_ACTION = "lab_data_imported"
AUDIT_MODULE = "import"
AUDIT_ENTITY_TYPE = "file_processing_queue"

EventKey = tuple[str, str, str | None]

# document_type -> payload decoder. Only lab EDD extractions are importable here.
_PAYLOAD_DECODERS: dict[str, Callable[[Mapping[str, Any]], ExtractedLabData]] = {
    LAB_DATA_DOCUMENT_TYPE: ExtractedLabData.from_payload,
}


@dataclass(frozen=True)
class EventGroups:
    groups: dict[EventKey, list[ParsedRecord]]
    excluded_records: int
    duplicate_records: int


def decode_extraction(payload: Mapping[str, Any] | None) -> ExtractedLabData:
    if not payload:
        raise ImportBadRequestError("No parsed records found in extracted_data")
    document_type = payload.get("document_type")
    decoder = _PAYLOAD_DECODERS.get(str(document_type))
    if decoder is None:
        raise ImportBadRequestError(f"Unsupported extracted_data document_type '{document_type}'")
    try:
        return decoder(payload)
    except (TypeError, ValueError) as exc:
        raise ImportBadRequestError(f"extracted_data is malformed: {exc}") from exc


def group_records(records: list[ParsedRecord]) -> EventGroups:
    """
    Group importable records by ``(outfall_db_id, sample_date, sample_time)``.

    Records without an outfall identity or sample date, and duplicate-flagged
    records, are excluded and counted.
    """

    groups: dict[EventKey, list[ParsedRecord]] = {}
    excluded = 0
    duplicates = 0
    for record in records:
        if record.is_duplicate:
            duplicates += 1
            continue
        if not record.outfall_db_id or not record.sample_date:
            excluded += 1
            continue
        key = (record.outfall_db_id, record.sample_date, record.sample_time or None)
        groups.setdefault(key, []).append(record)
    return EventGroups(groups=groups, excluded_records=excluded, duplicate_records=duplicates)


class LabDataImportService:
    """
    Validates an import request, claims the queue entry, writes the grouped
    events and results in one transaction, then records an audit entry.
    """

    def __init__(
        self,
        *,
        settings: LabDataImportSettings | None = None,
        audit_writer: AuditWriter | None = None,
        sleep: Callable[[float], None] = time.sleep,
        queue_repository_factory: Callable[[Session], FileQueueRepository] = FileQueueRepository,
        data_import_repository_factory: Callable[[Session], DataImportRepository] = DataImportRepository,
        lab_data_repository_factory: Callable[[Session], LabDataRepository] = LabDataRepository,
        audit_repository_factory: Callable[[Session], AuditLogRepository] = AuditLogRepository,
    ) -> None:
        self._settings = settings or get_lab_data_import_settings()
        self._audit_writer = audit_writer or AuditWriter(
            max_attempts=self._settings.audit_max_attempts,
            backoff_initial_seconds=self._settings.audit_backoff_initial_seconds,
            sleep=sleep,
        )
        self._queue_repository_factory = queue_repository_factory
        self._data_import_repository_factory = data_import_repository_factory
        self._lab_data_repository_factory = lab_data_repository_factory
        self._audit_repository_factory = audit_repository_factory

    def import_queue_entry(
        self,
        *,
        db: Session,
        queue_id: uuid.UUID,
        caller: CallerIdentity,
    ) -> LabDataImportSummary:
        queue_repository = self._queue_repository_factory(db)
        entry = queue_repository.get_entry(queue_id)
        extraction = self._validate_request(entry, caller)

        if not queue_repository.claim_for_import(queue_id=queue_id):
            db.rollback()
            raise ImportConflictError("Import already in progress for this queue entry.")
        db.commit()
        logger.info("Claimed lab data import queue_id=%s user_id=%s", queue_id, caller.user_id)

        try:
            summary = self._commit_extraction(
                db=db,
                queue_repository=queue_repository,
                entry=entry,
                extraction=extraction,
            )
        except ImportRequestError:
            raise
        except Exception as exc:
            self._mark_import_failed(db=db, queue_repository=queue_repository, queue_id=queue_id, exc=exc)
            raise LabDataImportError(str(exc)) from exc

        logger.info(
            "Lab data import completed queue_id=%s events_created=%s results_created=%s skipped_no_parameter=%s",
            queue_id,
            summary.events_created,
            summary.results_created,
            summary.skipped_no_parameter,
        )
        self._write_audit(db=db, queue_repository=queue_repository, entry=entry, caller=caller, summary=summary)
        return summary

    def _validate_request(
        self,
        entry: FileProcessingQueue | None,
        caller: CallerIdentity,
    ) -> ExtractedLabData:
        if entry is None:
            raise ImportNotFoundError("Queue entry not found")
        if not caller.can_import():
            raise ImportForbiddenError("Your role does not permit importing lab data.")
        if entry.organization_id is None:
            raise ImportBadRequestError("Queue entry missing organization_id")
        if str(entry.organization_id) != str(caller.organization_id):
            raise ImportForbiddenError("Queue entry belongs to a different organization.")
        if entry.status != QueueStatus.PARSED:
            raise ImportConflictError(f"Cannot import entry with status '{entry.status}'. Expected 'parsed'.")
        if entry.file_category != FileCategory.LAB_DATA:
            raise ImportBadRequestError(
                f"Lab data import only handles lab_data files, not '{entry.file_category}'"
            )

        extraction = decode_extraction(entry.extracted_data)
        if not extraction.records:
            raise ImportBadRequestError("No parsed records found in extracted_data")
        return extraction

    def _commit_extraction(
        self,
        *,
        db: Session,
        queue_repository: FileQueueRepository,
        entry: FileProcessingQueue,
        extraction: ExtractedLabData,
    ) -> LabDataImportSummary:
        grouped = group_records(extraction.records)
        if not grouped.groups:
            queue_repository.restore_parsed(queue_id=entry.id)
            db.commit()
            raise ImportBadRequestError(
                "No valid records to import. Records may be missing a matched outfall or sample date."
            )

        organization_id = str(entry.organization_id)
        source_file_id = str(entry.id)
        event_rows = [
            self._event_row(key, records[0], organization_id, extraction.import_id, source_file_id)
            for key, records in grouped.groups.items()
        ]

        lab_data_repository = self._lab_data_repository_factory(db)
        upserted = lab_data_repository.upsert_sampling_events(event_rows, batch_size=self._settings.batch_size)
        event_ids = {event.key: event.id for event in upserted}
        events_created = sum(1 for event in upserted if event.inserted)

        result_rows: list[LabResultRow] = []
        skipped_no_parameter = 0
        for key, records in grouped.groups.items():
            event_id = event_ids.get(key)
            if event_id is None:
                raise LabDataImportError(f"Sampling event was not persisted for key {key}")
            for record in records:
                if not record.parameter_id:
                    skipped_no_parameter += 1
                    continue
                result_rows.append(self._result_row(record, event_id, extraction.import_id))

        results_created = lab_data_repository.insert_lab_results(result_rows, batch_size=self._settings.batch_size)

        queue_repository.mark_imported(queue_id=entry.id, records_imported=results_created)
        ordered_event_ids = [event.id for event in upserted]
        if extraction.import_id:
            self._data_import_repository_factory(db).mark_imported(
                import_id=uuid.UUID(extraction.import_id),
                record_count=results_created,
                metadata={
                    "sampling_event_count": events_created,
                    "lab_result_count": results_created,
                    "skipped_no_parameter": skipped_no_parameter,
                    "excluded_records": grouped.excluded_records,
                    "duplicate_records": grouped.duplicate_records,
                    "imported_event_ids": ordered_event_ids[:MAX_TRACKED_IDS],
                },
            )
        db.commit()

        return LabDataImportSummary(
            events_created=events_created,
            results_created=results_created,
            skipped_no_parameter=skipped_no_parameter,
            import_id=extraction.import_id,
            excluded_records=grouped.excluded_records,
            duplicate_records=grouped.duplicate_records,
            event_ids=ordered_event_ids,
        )

    @staticmethod
    def _event_row(
        key: EventKey,
        first: ParsedRecord,
        organization_id: str,
        import_id: str | None,
        source_file_id: str,
    ) -> SamplingEventRow:
        outfall_id, sample_date, sample_time = key
        return SamplingEventRow(
            organization_id=organization_id,
            outfall_id=outfall_id,
            sample_date=sample_date,
            sample_time=sample_time,
            sampler_name=first.sampler or None,
            latitude=first.latitude,
            longitude=first.longitude,
            stream_name=first.stream_name or None,
            lab_name=first.lab_name or None,
            import_id=import_id,
            source_file_id=source_file_id,
        )

    @staticmethod
    def _result_row(record: ParsedRecord, event_id: str, import_id: str | None) -> LabResultRow:
        return LabResultRow(
            sampling_event_id=event_id,
            parameter_id=str(record.parameter_id),
            result_value=record.value,
            unit=record.unit or None,
            below_detection=record.below_detection,
            qualifier=record.data_qualifier,
            analysis_date=record.analysis_date,
            hold_time_days=record.hold_time_days,
            hold_time_compliant=record.hold_time_compliant,
            import_id=import_id,
            raw_parameter_name=record.parameter_raw,
            raw_value=record.value_raw,
            row_number=record.row_number,
        )

    def _mark_import_failed(
        self,
        *,
        db: Session,
        queue_repository: FileQueueRepository,
        queue_id: uuid.UUID,
        exc: Exception,
    ) -> None:
        logger.exception("Lab data import failed queue_id=%s error=%s", queue_id, exc)
        try:
            db.rollback()
            queue_repository.mark_failed(queue_id=queue_id, error_log=[f"Import failed: {exc}"])
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import state queue_id=%s", queue_id)

    def _write_audit(
        self,
        *,
        db: Session,
        queue_repository: FileQueueRepository,
        entry: FileProcessingQueue,
        caller: CallerIdentity,
        summary: LabDataImportSummary,
    ) -> None:
        payload = {
            "user_id": caller.user_id,
            "organization_id": str(entry.organization_id),
            "action": AUDIT_ACTION,
            "module": AUDIT_MODULE,
            "entity_type": AUDIT_ENTITY_TYPE,
            "entity_id": str(entry.id),
            "details": {
                "file_name": entry.file_name,
                "sampling_events_created": summary.events_created,
                "lab_results_created": summary.results_created,
                "skipped_no_parameter": summary.skipped_no_parameter,
                "excluded_records": summary.excluded_records,
                "duplicate_records": summary.duplicate_records,
                "import_id": summary.import_id,
            },
        }
        audit_repository = self._audit_repository_factory(db)

        def sink(item: dict[str, Any]) -> None:
            try:
                audit_repository.write(item)
                db.commit()
            except Exception:
                db.rollback()
                raise

        def fallback(item: dict[str, Any]) -> None:
            try:
                queue_repository.set_pending_audit_log(queue_id=entry.id, payload=item)
                db.commit()
            except Exception:
                db.rollback()
                raise

        self._audit_writer.write(payload, sink=sink, fallback=fallback)


@lru_cache(maxsize=1)
def get_lab_data_import_service() -> LabDataImportService:
    return LabDataImportService()
