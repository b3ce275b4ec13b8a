"""
app/config.py

Environment-driven settings for EDD parsing, lab data import and file storage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_MEGABYTE = 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class LabDataParseSettings:
    """
    Resource limits and storage caps applied while parsing an EDD upload.
    """

    max_file_size_bytes: int = 50 * _MEGABYTE
    max_rows: int = 50_000
    max_stored_records: int = 5_000
    max_validation_errors: int = 50
    max_hold_time_violations: int = 50
    log_validation_errors: bool = False


@dataclass(frozen=True)
class LabDataImportSettings:
    """
    Batch and audit retry behavior for committing an approved extraction.
    """

    batch_size: int = 50
    audit_max_attempts: int = 3
    audit_backoff_initial_seconds: float = 0.5


@dataclass(frozen=True)
class StorageSettings:
    root_dir: str = "data/uploads"


@lru_cache(maxsize=1)
def get_lab_data_parse_settings() -> LabDataParseSettings:
    return LabDataParseSettings(
        max_file_size_bytes=max(1, _get_int_env("EDD_MAX_FILE_SIZE_BYTES", 50 * _MEGABYTE)),
        max_rows=max(1, _get_int_env("EDD_MAX_ROWS", 50_000)),
        max_stored_records=max(1, _get_int_env("EDD_MAX_STORED_RECORDS", 5_000)),
        max_validation_errors=max(1, _get_int_env("EDD_MAX_VALIDATION_ERRORS", 50)),
        max_hold_time_violations=max(1, _get_int_env("EDD_MAX_HOLD_TIME_VIOLATIONS", 50)),
        log_validation_errors=_get_bool_env("EDD_LOG_VALIDATION_ERRORS", False),
    )


@lru_cache(maxsize=1)
def get_lab_data_import_settings() -> LabDataImportSettings:
    """
    Return cached importer settings from environment variables.
    """

    return LabDataImportSettings(
        batch_size=max(1, _get_int_env("LAB_IMPORT_BATCH_SIZE", 50)),
        audit_max_attempts=max(1, _get_int_env("LAB_IMPORT_AUDIT_MAX_ATTEMPTS", 3)),
        audit_backoff_initial_seconds=max(
            0.0, _get_float_env("LAB_IMPORT_AUDIT_BACKOFF_INITIAL_SECONDS", 0.5)
        ),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    return StorageSettings(root_dir=_get_str_env("EDD_STORAGE_ROOT", "data/uploads"))
