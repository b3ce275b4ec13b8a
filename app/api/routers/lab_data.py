"""
app/api/routers/lab_data.py

Lab EDD parse, review and import HTTP endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_caller_identity
from app.domain.caller import CallerIdentity
from app.schemas.lab_data import (
    DateRangeResponse,
    LabDataErrorResponse,
    LabDataExtractionResponse,
    LabDataImportResponse,
    LabDataParseResponse,
)
from app.services.lab_data_errors import ImportRequestError, LabDataImportError, LabDataParseFailedError
from app.services.lab_data_import_service import LabDataImportService, get_lab_data_import_service
from app.services.lab_data_parse_service import LabDataParseService, get_lab_data_parse_service
from app.services.task_executor import FastAPIBackgroundTaskExecutor
from db.models.file_processing_queue import QueueStatus
from db.session import get_db

router = APIRouter(prefix="/lab-data", tags=["lab-data"])


def _error_detail(exc: ImportRequestError) -> dict:
    error_log = exc.error_log if isinstance(exc, LabDataParseFailedError) else []
    return LabDataErrorResponse(error=exc.message, error_log=error_log).model_dump()


@router.post("/{queue_id}/parse", response_model=LabDataParseResponse)
def parse_lab_data(
    queue_id: UUID,
    background_tasks: BackgroundTasks,
    caller: CallerIdentity = Depends(get_caller_identity),
    db: Session = Depends(get_db),
    parse_service: LabDataParseService = Depends(get_lab_data_parse_service),
) -> LabDataParseResponse:
    """
    Parse a queued EDD upload and store the extraction for review.
    """

    try:
        extraction = parse_service.parse_queue_entry(
            db=db,
            queue_id=queue_id,
            caller=caller,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
        )
    except ImportRequestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=_error_detail(exc)) from exc

    return LabDataParseResponse(
        queue_id=queue_id,
        status=QueueStatus.PARSED,
        import_id=extraction.import_id,
        file_format=extraction.file_format,
        parser_version=extraction.parser_version,
        total_rows=extraction.total_rows,
        parsed_rows=extraction.parsed_rows,
        skipped_rows=extraction.skipped_rows,
        duplicate_rows=extraction.duplicate_rows,
        parameters_found=extraction.parameters_found,
        parameters_resolved=extraction.parameters_resolved,
        outfalls_found=extraction.outfalls_found,
        outfalls_resolved=extraction.outfalls_resolved,
        outfall_aliases_created=extraction.outfall_aliases_created,
        date_range=DateRangeResponse(
            earliest=extraction.date_range.earliest,
            latest=extraction.date_range.latest,
        ),
        records_truncated=extraction.records_truncated,
        summary=extraction.summary,
        warnings=extraction.warnings,
    )


@router.get("/{queue_id}/extraction", response_model=LabDataExtractionResponse)
def get_lab_data_extraction(
    queue_id: UUID,
    caller: CallerIdentity = Depends(get_caller_identity),
    db: Session = Depends(get_db),
    parse_service: LabDataParseService = Depends(get_lab_data_parse_service),
) -> LabDataExtractionResponse:
    try:
        extraction = parse_service.get_extraction(db=db, queue_id=queue_id, caller=caller)
    except ImportRequestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=_error_detail(exc)) from exc
    return LabDataExtractionResponse(queue_id=queue_id, extracted_data=extraction.to_payload())


@router.post("/{queue_id}/import", response_model=LabDataImportResponse)
def import_lab_data(
    queue_id: UUID,
    caller: CallerIdentity = Depends(get_caller_identity),
    db: Session = Depends(get_db),
    import_service: LabDataImportService = Depends(get_lab_data_import_service),
) -> LabDataImportResponse:
    """
    Commit a reviewed extraction into sampling events and lab results.
    """

    try:
        summary = import_service.import_queue_entry(db=db, queue_id=queue_id, caller=caller)
    except ImportRequestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=_error_detail(exc)) from exc
    except LabDataImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=LabDataErrorResponse(error=str(exc)).model_dump(),
        ) from exc

    return LabDataImportResponse(
        events_created=summary.events_created,
        results_created=summary.results_created,
        skipped_no_parameter=summary.skipped_no_parameter,
        import_id=summary.import_id,
        excluded_records=summary.excluded_records,
        duplicate_records=summary.duplicate_records,
    )
