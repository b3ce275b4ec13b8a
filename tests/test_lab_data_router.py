"""
tests/test_lab_data_router.py

HTTP contract of the lab data endpoints with services and DB overridden.
"""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import lab_data_router
from app.domain.lab_data import LabDataImportSummary
from app.services.lab_data_errors import ImportForbiddenError, LabDataImportError, LabDataParseFailedError
from app.services.lab_data_import_service import get_lab_data_import_service
from app.services.lab_data_parse_service import get_lab_data_parse_service
from db.session import get_db

USER_ID = "22222222-2222-2222-2222-222222222222"
ORG_ID = "11111111-1111-1111-1111-111111111111"
HEADERS = {"X-User-Id": USER_ID, "X-Organization-Id": ORG_ID, "X-User-Roles": "admin"}


class _StubImportService:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.callers: list[Any] = []

    def import_queue_entry(self, *, db: Any, queue_id: uuid.UUID, caller: Any) -> LabDataImportSummary:
        self.callers.append(caller)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class _StubParseService:
    def __init__(self, error: Exception) -> None:
        self.error = error

    def parse_queue_entry(self, **_: Any) -> Any:
        raise self.error


def _client(*, import_service: Any = None, parse_service: Any = None) -> TestClient:
    application = FastAPI()
    application.include_router(lab_data_router)
    application.dependency_overrides[get_db] = lambda: None
    if import_service is not None:
        application.dependency_overrides[get_lab_data_import_service] = lambda: import_service
    if parse_service is not None:
        application.dependency_overrides[get_lab_data_parse_service] = lambda: parse_service
    return TestClient(application)


def test_import_requires_caller_identity() -> None:
    client = _client(import_service=_StubImportService(None))
    response = client.post(f"/lab-data/{uuid.uuid4()}/import")
    assert response.status_code == 401


def test_import_success_response() -> None:
    summary = LabDataImportSummary(
        events_created=4,
        results_created=5,
        skipped_no_parameter=1,
        import_id="33333333-3333-3333-3333-333333333333",
        duplicate_records=2,
    )
    service = _StubImportService(summary)

    response = _client(import_service=service).post(f"/lab-data/{uuid.uuid4()}/import", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["events_created"] == 4
    assert body["results_created"] == 5
    assert body["duplicate_records"] == 2
    assert service.callers[0].roles == frozenset({"admin"})
    assert service.callers[0].organization_id == ORG_ID


@pytest.mark.parametrize(
    "error, status_code",
    [
        (ImportForbiddenError("Your role does not permit importing lab data."), 403),
        (LabDataImportError("connection reset"), 500),
    ],
)
def test_import_errors_map_to_status(error: Exception, status_code: int) -> None:
    response = _client(import_service=_StubImportService(error)).post(
        f"/lab-data/{uuid.uuid4()}/import", headers=HEADERS
    )
    assert response.status_code == status_code
    assert response.json()["detail"]["success"] is False


def test_parse_failure_returns_error_log() -> None:
    error = LabDataParseFailedError(
        "File contains no data rows. Only headers were found.",
        error_log=["File contains no data rows. Only headers were found.", "No data rows found."],
    )

    response = _client(parse_service=_StubParseService(error)).post(
        f"/lab-data/{uuid.uuid4()}/parse", headers=HEADERS
    )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "File contains no data rows. Only headers were found."
    assert len(detail["error_log"]) == 2


def test_invalid_user_header_is_bad_request() -> None:
    response = _client(import_service=_StubImportService(None)).post(
        f"/lab-data/{uuid.uuid4()}/import",
        headers={"X-User-Id": "not-a-uuid"},
    )
    assert response.status_code == 400
