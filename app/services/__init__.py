"""
app/services package marker.
"""

from app.services.audit_writer import AuditWriter
from app.services.lab_data_errors import (
    ImportBadRequestError,
    ImportConflictError,
    ImportForbiddenError,
    ImportNotFoundError,
    ImportRequestError,
    LabDataImportError,
    LabDataParseFailedError,
)
from app.services.lab_data_import_service import LabDataImportService, get_lab_data_import_service
from app.services.lab_data_parse_service import LabDataParseService, get_lab_data_parse_service
from app.services.task_executor import FastAPIBackgroundTaskExecutor, InlineTaskExecutor, TaskExecutor

__all__ = [
    "AuditWriter",
    "ImportBadRequestError",
    "ImportConflictError",
    "ImportForbiddenError",
    "ImportNotFoundError",
    "ImportRequestError",
    "LabDataImportError",
    "LabDataParseFailedError",
    "LabDataImportService",
    "get_lab_data_import_service",
    "LabDataParseService",
    "get_lab_data_parse_service",
    "TaskExecutor",
    "FastAPIBackgroundTaskExecutor",
    "InlineTaskExecutor",
]
