"""
app/services/lab_data_parse_service.py

Parse a queued lab EDD upload into an ExtractedLabData report for review.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from functools import lru_cache

from sqlalchemy.orm import Session, sessionmaker

from app.config import LabDataParseSettings, get_lab_data_parse_settings, get_storage_settings
from app.domain.caller import CallerIdentity
from app.domain.lab_data import ExtractedLabData
from app.repositories.lab_reference_repository import LabReferenceRepository
from app.services.lab_data_errors import (
    ImportBadRequestError,
    ImportConflictError,
    ImportNotFoundError,
    LabDataParseFailedError,
)
from app.services.task_executor import TaskExecutor
from db.models.file_processing_queue import FileCategory, FileProcessingQueue, QueueStatus
from db.repositories.data_import_repository import DataImportRepository
from db.repositories.file_queue_repository import FileQueueRepository
from db.repositories.storage import FileStorageBackend, LocalFileStorage
from edd.errors import classify_parse_error
from edd.parser import PARSER_VERSION, EDDParser, ParseLimits
from edd.resolver import PendingOutfallAlias

logger = logging.getLogger(__name__)

PARSEABLE_STATUSES = frozenset({QueueStatus.QUEUED, QueueStatus.FAILED})
SUPPORTED_STATE_CODES = frozenset({"AL", "KY", "TN", "VA", "WV"})


def infer_state_code(current: str | None, states: Sequence[str]) -> str | None:
    """
    Return the state to auto-fill, or None when the entry keeps its value.
    """

    if current or len(states) != 1:
        return None
    state = states[0].upper()
    return state if state in SUPPORTED_STATE_CODES else None


class LabDataParseService:
    def __init__(
        self,
        *,
        settings: LabDataParseSettings | None = None,
        storage: FileStorageBackend | None = None,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        queue_repository_factory: Callable[[Session], FileQueueRepository] = FileQueueRepository,
        data_import_repository_factory: Callable[[Session], DataImportRepository] = DataImportRepository,
        reference_repository_factory: Callable[[Session], LabReferenceRepository] = LabReferenceRepository,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._settings = settings or get_lab_data_parse_settings()
        self._storage = storage or LocalFileStorage(get_storage_settings().root_dir)
        self._queue_repository_factory = queue_repository_factory
        self._data_import_repository_factory = data_import_repository_factory
        self._reference_repository_factory = reference_repository_factory

    @property
    def limits(self) -> ParseLimits:
        return ParseLimits(
            max_file_size_bytes=self._settings.max_file_size_bytes,
            max_rows=self._settings.max_rows,
            max_stored_records=self._settings.max_stored_records,
            max_validation_errors=self._settings.max_validation_errors,
            max_hold_time_violations=self._settings.max_hold_time_violations,
        )

    def parse_queue_entry(
        self,
        *,
        db: Session,
        queue_id: uuid.UUID,
        caller: CallerIdentity,
        executor: TaskExecutor,
    ) -> ExtractedLabData:
        queue_repository = self._queue_repository_factory(db)
        entry = queue_repository.get_entry(queue_id)
        self._validate_entry(entry)

        data_import_repository = self._data_import_repository_factory(db)
        queue_repository.mark_processing(queue_id=queue_id)
        import_id: uuid.UUID | None = None
        if entry.organization_id is not None:
            data_import = data_import_repository.create_parsing(
                organization_id=entry.organization_id,
                file_name=entry.file_name,
                imported_by=uuid.UUID(caller.user_id) if caller.user_id else None,
                metadata={"parser_version": PARSER_VERSION, "queue_id": str(queue_id)},
            )
            import_id = data_import.id
        db.commit()
        logger.info("Lab data parse started queue_id=%s file_name=%s import_id=%s", queue_id, entry.file_name, import_id)

        organization_id = str(entry.organization_id) if entry.organization_id is not None else None
        try:
            content = self._storage.read(storage_bucket=entry.storage_bucket, storage_path=entry.storage_path)
            parser = EDDParser(
                reference_lookup=self._reference_repository_factory(db),
                limits=self.limits,
                log_validation_errors=self._settings.log_validation_errors,
            )
            outcome = parser.parse_file(
                content,
                file_name=entry.file_name,
                mime_type=entry.mime_type,
                organization_id=organization_id,
                import_id=str(import_id) if import_id else None,
            )
            extraction = outcome.extraction

            queue_repository.mark_parsed(
                queue_id=queue_id,
                extracted_data=extraction.to_payload(),
                records_extracted=extraction.parsed_rows,
                warnings=extraction.warnings,
                state_code=infer_state_code(entry.state_code, extraction.states),
                data_import_id=import_id,
            )
            if import_id is not None:
                data_import_repository.mark_parsed(
                    import_id=import_id,
                    record_count=extraction.parsed_rows,
                    metadata={
                        "total_rows": extraction.total_rows,
                        "parsed_rows": extraction.parsed_rows,
                        "skipped_rows": extraction.skipped_rows,
                        "duplicate_rows": extraction.duplicate_rows,
                        "parameters_resolved": extraction.parameters_resolved,
                        "outfalls_resolved": extraction.outfalls_resolved,
                        "file_format": extraction.file_format,
                    },
                )
            db.commit()
        except Exception as exc:
            error_log = self._mark_parse_failed(
                db=db,
                queue_repository=queue_repository,
                data_import_repository=data_import_repository,
                queue_id=queue_id,
                import_id=import_id,
                exc=exc,
            )
            raise LabDataParseFailedError(error_log[0], error_log=error_log) from exc

        logger.info(
            "Lab data parse completed queue_id=%s parsed_rows=%s warnings=%s",
            queue_id,
            extraction.parsed_rows,
            len(extraction.warnings),
        )

        if organization_id and outcome.pending_outfall_aliases:
            executor.submit(self.persist_outfall_aliases, organization_id, list(outcome.pending_outfall_aliases))
        return extraction

    def get_extraction(self, *, db: Session, queue_id: uuid.UUID, caller: CallerIdentity) -> ExtractedLabData:
        entry = self._queue_repository_factory(db).get_entry(queue_id)
        if entry is None:
            raise ImportNotFoundError("Queue entry not found")
        if entry.organization_id is not None and str(entry.organization_id) != str(caller.organization_id):
            raise ImportNotFoundError("Queue entry not found")
        if not entry.extracted_data:
            raise ImportConflictError(f"Queue entry has no extraction (status '{entry.status}').")
        return ExtractedLabData.from_payload(entry.extracted_data)

    def persist_outfall_aliases(self, organization_id: str, aliases: list[PendingOutfallAlias]) -> None:
        """
        Best-effort write of outfall aliases learned during a parse.

        Runs after the response with its own session; failures are logged and
        dropped since they only slow down future matching.
        """

        with self._session_factory() as db:
            try:
                saved = self._reference_repository_factory(db).save_outfall_aliases(
                    organization_id=organization_id,
                    aliases=aliases,
                )
                db.commit()
                logger.info("Persisted outfall aliases organization_id=%s saved=%s", organization_id, saved)
            except Exception as exc:
                db.rollback()
                logger.warning(
                    "Failed to persist outfall aliases organization_id=%s count=%s error=%s",
                    organization_id,
                    len(aliases),
                    exc,
                )

    def _validate_entry(self, entry: FileProcessingQueue | None) -> None:
        if entry is None:
            raise ImportNotFoundError("Queue entry not found")
        if entry.status not in PARSEABLE_STATUSES:
            raise ImportConflictError(
                f"Cannot parse entry with status '{entry.status}'. Expected 'queued' or 'failed'."
            )
        if entry.file_category != FileCategory.LAB_DATA:
            raise ImportBadRequestError(
                f"Lab data parsing only handles lab_data files, not '{entry.file_category}'"
            )
        max_bytes = self._settings.max_file_size_bytes
        if entry.file_size is not None and entry.file_size > max_bytes:
            raise ImportBadRequestError(
                f"File is too large ({entry.file_size / 1024 / 1024:.1f}MB). "
                f"Maximum is {max_bytes // (1024 * 1024)}MB."
            )

    def _mark_parse_failed(
        self,
        *,
        db: Session,
        queue_repository: FileQueueRepository,
        data_import_repository: DataImportRepository,
        queue_id: uuid.UUID,
        import_id: uuid.UUID | None,
        exc: Exception,
    ) -> list[str]:
        error_log = classify_parse_error(exc)
        logger.exception("Lab data parse failed queue_id=%s error=%s", queue_id, error_log[0])
        try:
            db.rollback()
            queue_repository.mark_failed(queue_id=queue_id, error_log=error_log)
            if import_id is not None:
                data_import_repository.mark_failed(import_id=import_id, error_log=error_log)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed parse state queue_id=%s", queue_id)
        return error_log


@lru_cache(maxsize=1)
def get_lab_data_parse_service() -> LabDataParseService:
    return LabDataParseService()
