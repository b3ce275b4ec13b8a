"""
app/services/lab_data_errors.py

Request-level errors raised by the lab data parse and import services.
Each carries the HTTP status the API layer should answer with.
"""

from __future__ import annotations


class ImportRequestError(Exception):
    """Base class for rejected parse/import requests."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ImportBadRequestError(ImportRequestError):
    status_code = 400


class ImportForbiddenError(ImportRequestError):
    status_code = 403


class ImportNotFoundError(ImportRequestError):
    status_code = 404


class ImportConflictError(ImportRequestError):
    status_code = 409


class LabDataParseFailedError(ImportRequestError):
    """
    Raised after a parse failure has been recorded on the queue entry.

    ``error_log`` holds the classified user message and raw diagnostic.
    """

    status_code = 422

    def __init__(self, message: str, *, error_log: list[str]) -> None:
        super().__init__(message)
        self.error_log = list(error_log)


class LabDataImportError(Exception):
    """Raised when committing an extraction fails after the entry was claimed."""

    status_code = 500
