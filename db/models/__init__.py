"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.alias import AliasSource, OutfallAlias, ParameterAlias
from db.models.audit_log import AuditLog
from db.models.data_import import DataImport, DataImportStatus
from db.models.file_processing_queue import FileCategory, FileProcessingQueue, QueueStatus
from db.models.lab_data import LabResult, SamplingEvent
from db.models.reference import NpdesPermit, Outfall, Parameter

__all__ = [
    "AliasSource",
    "AuditLog",
    "DataImport",
    "DataImportStatus",
    "FileCategory",
    "FileProcessingQueue",
    "LabResult",
    "NpdesPermit",
    "Outfall",
    "OutfallAlias",
    "Parameter",
    "ParameterAlias",
    "QueueStatus",
    "SamplingEvent",
]
