"""
tests/test_lab_data_repository.py

Statements LabDataRepository sends to PostgreSQL, compiled without a database.
"""

from __future__ import annotations

import uuid
from datetime import date, time
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from app.domain.lab_data import LabResultRow, SamplingEventRow
from app.repositories.lab_data_repository import LabDataRepository
from db.repositories.errors import LabDataPersistenceError

OUTFALL_ID = "00000000-0000-0000-0000-00000000000a"
EVENT_ID = "00000000-0000-0000-0000-0000000000e1"
PARAMETER_ID = "00000000-0000-0000-0000-0000000000a1"


class _Result:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def all(self) -> list[Any]:
        return list(self._rows)


class RecordingSession:
    def __init__(self, *, rows: list[Any] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.statements: list[Any] = []

    def _run(self, stmt: Any) -> _Result:
        self.statements.append(stmt)
        if self.error is not None:
            raise self.error
        return _Result(self.rows)

    def execute(self, stmt: Any) -> _Result:
        return self._run(stmt)

    def scalars(self, stmt: Any) -> _Result:
        return self._run(stmt)


def _sql(stmt: Any) -> str:
    return " ".join(str(stmt.compile(dialect=postgresql.dialect())).split())


def _event(sample_time: str | None = "09:30", sample_date: str = "2024-01-15") -> SamplingEventRow:
    return SamplingEventRow(
        organization_id=None,
        outfall_id=OUTFALL_ID,
        sample_date=sample_date,
        sample_time=sample_time,
        sampler_name="J. Doe",
        latitude=None,
        longitude=None,
        stream_name=None,
        lab_name="Appalachian Labs",
        import_id=None,
        source_file_id=None,
    )


def _result(parameter_id: str = PARAMETER_ID) -> LabResultRow:
    return LabResultRow(
        sampling_event_id=EVENT_ID,
        parameter_id=parameter_id,
        result_value=1.5,
        unit="mg/L",
        below_detection=False,
        qualifier=None,
        analysis_date="2024-01-16",
        hold_time_days=1.0,
        hold_time_compliant=True,
        import_id=None,
        raw_parameter_name="Iron, Total",
        raw_value="1.5",
        row_number=2,
    )


class TestSamplingEventUpsert:
    def test_merge_on_event_constraint_and_report_inserts(self) -> None:
        existing = (uuid.UUID(EVENT_ID), uuid.UUID(OUTFALL_ID), date(2024, 1, 15), time(9, 30), False)
        session = RecordingSession(rows=[existing])

        upserted = LabDataRepository(session).upsert_sampling_events([_event()])

        sql = _sql(session.statements[0])
        assert "ON CONFLICT ON CONSTRAINT uq_sampling_events_outfall_date_time DO UPDATE" in sql
        assert "sampler_name = excluded.sampler_name" in sql
        assert "(xmax = 0) AS inserted" in sql
        assert upserted[0].key == (OUTFALL_ID, "2024-01-15", "09:30")
        assert upserted[0].id == EVENT_ID
        assert upserted[0].inserted is False

    def test_same_key_sent_once_and_chunked(self) -> None:
        session = RecordingSession()
        rows = [_event(), _event(), _event(sample_time=None), _event(sample_date="2024-01-16")]

        LabDataRepository(session).upsert_sampling_events(rows, batch_size=2)

        assert len(session.statements) == 2

    def test_database_error_is_wrapped(self) -> None:
        session = RecordingSession(error=OperationalError("INSERT", {}, Exception("server closed the connection")))
        with pytest.raises(LabDataPersistenceError, match="Failed to upsert sampling events"):
            LabDataRepository(session).upsert_sampling_events([_event()])


class TestLabResultInsert:
    def test_conflicts_are_ignored_and_not_counted(self) -> None:
        session = RecordingSession(rows=[uuid.uuid4()])
        second_parameter = "00000000-0000-0000-0000-0000000000a2"

        created = LabDataRepository(session).insert_lab_results([_result(), _result(), _result(second_parameter)])

        sql = _sql(session.statements[0])
        assert "ON CONFLICT ON CONSTRAINT uq_lab_results_event_parameter DO NOTHING" in sql
        assert "RETURNING lab_results.id" in sql
        assert created == 1

    def test_empty_batch_sends_nothing(self) -> None:
        session = RecordingSession()
        assert LabDataRepository(session).insert_lab_results([]) == 0
        assert LabDataRepository(session).upsert_sampling_events([]) == []
        assert session.statements == []
