"""
db/repositories/storage.py

Read access to EDD uploads referenced by file_processing_queue rows.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError, StoredFileNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "lab-data"


class FileStorageBackend(Protocol):
    def read(self, *, storage_bucket: str | None, storage_path: str) -> bytes:
        ...


class LocalFileStorage:
    """
    Uploads live under ``root_dir/<bucket>/<storage_path>``.

    ``storage_path`` comes from the queue row and is confined to its bucket.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    def path_for(self, *, storage_bucket: str | None, storage_path: str) -> Path:
        bucket_dir = (self._root_dir / (storage_bucket or DEFAULT_BUCKET)).resolve()
        target = (bucket_dir / storage_path.lstrip("/")).resolve()
        if bucket_dir not in target.parents:
            raise FileStorageError(f"Storage path escapes bucket: {storage_path}")
        return target

    def read(self, *, storage_bucket: str | None, storage_path: str) -> bytes:
        target = self.path_for(storage_bucket=storage_bucket, storage_path=storage_path)
        if not target.is_file():
            raise StoredFileNotFoundError(f"Failed to download file: {storage_path} not found")
        try:
            content = target.read_bytes()
        except OSError as exc:
            raise FileStorageError(f"Failed to download file: {exc}") from exc
        logger.debug("Read upload bucket=%s path=%s bytes=%s", storage_bucket, storage_path, len(content))
        return content
