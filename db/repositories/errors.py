"""
Repository-layer exceptions for queue, storage and lab data persistence.
"""

from __future__ import annotations


class LabDataRepositoryError(Exception):
    """Base exception for lab data repository failures."""


class FileStorageError(LabDataRepositoryError):
    """Raised when reading or writing an uploaded file fails."""


class StoredFileNotFoundError(FileStorageError):
    """Raised when the queue entry points at a file that is not in storage."""


class LabDataPersistenceError(LabDataRepositoryError):
    """Raised when sampling events or lab results cannot be written."""
