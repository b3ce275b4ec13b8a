from __future__ import annotations

from pathlib import Path

import pytest

from db.repositories.errors import FileStorageError, StoredFileNotFoundError
from db.repositories.storage import DEFAULT_BUCKET, LocalFileStorage


def _put(root: Path, bucket: str, relative: str, content: bytes) -> None:
    target = root / bucket / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


def test_read_defaults_to_lab_data_bucket(tmp_path: Path) -> None:
    _put(tmp_path, DEFAULT_BUCKET, "org-1/2024/results.csv", b"Permit#,Value\n")

    storage = LocalFileStorage(tmp_path)

    assert storage.read(storage_bucket=None, storage_path="org-1/2024/results.csv") == b"Permit#,Value\n"
    assert storage.read(storage_bucket=DEFAULT_BUCKET, storage_path="/org-1/2024/results.csv") == (
        b"Permit#,Value\n"
    )


def test_named_bucket(tmp_path: Path) -> None:
    _put(tmp_path, "archive", "q1.xlsx", b"PK")
    assert LocalFileStorage(tmp_path).read(storage_bucket="archive", storage_path="q1.xlsx") == b"PK"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(StoredFileNotFoundError, match="not found"):
        LocalFileStorage(tmp_path).read(storage_bucket=None, storage_path="org/2024/missing.csv")


def test_path_escape_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(FileStorageError, match="escapes bucket"):
        LocalFileStorage(tmp_path).read(storage_bucket="lab-data", storage_path="../../secrets.txt")


def test_directory_is_not_a_file(tmp_path: Path) -> None:
    (tmp_path / DEFAULT_BUCKET / "org-1").mkdir(parents=True)
    with pytest.raises(StoredFileNotFoundError):
        LocalFileStorage(tmp_path).read(storage_bucket=None, storage_path="org-1")
