"""
Repository layer exports.
"""

from db.repositories.data_import_repository import DataImportRepository
from db.repositories.errors import (
    FileStorageError,
    LabDataPersistenceError,
    LabDataRepositoryError,
    StoredFileNotFoundError,
)
from db.repositories.file_queue_repository import FileQueueRepository
from db.repositories.storage import DEFAULT_BUCKET, FileStorageBackend, LocalFileStorage

__all__ = [
    "DEFAULT_BUCKET",
    "DataImportRepository",
    "FileQueueRepository",
    "FileStorageBackend",
    "LocalFileStorage",
    "LabDataRepositoryError",
    "FileStorageError",
    "StoredFileNotFoundError",
    "LabDataPersistenceError",
]
