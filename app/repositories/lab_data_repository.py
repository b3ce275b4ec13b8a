"""
app/repositories/lab_data_repository.py

Chunked, idempotent persistence of sampling events and lab results.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, time
from typing import Any

from sqlalchemy import func, literal_column
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.lab_data import LabResultRow, SamplingEventRow, UpsertedSamplingEvent
from db.models.lab_data import (
    LAB_RESULT_UNIQUE_CONSTRAINT,
    SAMPLING_EVENT_UNIQUE_CONSTRAINT,
    LabResult,
    SamplingEvent,
)
from db.repositories.errors import LabDataPersistenceError

_DEFAULT_BATCH_SIZE = 50
_MERGED_EVENT_COLUMNS = (
    "sampler_name",
    "latitude",
    "longitude",
    "stream_name",
    "lab_name",
    "import_id",
    "source_file_id",
)


def _uuid_or_none(value: str | None) -> uuid.UUID | None:
    return uuid.UUID(str(value)) if value else None


def _date_or_none(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _time_or_none(value: str | None) -> time | None:
    return time.fromisoformat(value) if value else None


def _format_time(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


class LabDataRepository:
    """
    Repository for batch upserts into sampling_events and lab_results.

    Every write is a merge, so re-importing the same extraction creates
    nothing new.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert_sampling_events(
        self,
        rows: Sequence[SamplingEventRow],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> list[UpsertedSamplingEvent]:
        """
        Insert events, merging descriptive columns into existing ones.

        ``inserted`` is True only for rows created by this call.
        """

        if not rows:
            return []

        payloads = self._deduplicate(
            [
                {
                    "id": uuid.uuid4(),
                    "organization_id": _uuid_or_none(row.organization_id),
                    "outfall_id": uuid.UUID(row.outfall_id),
                    "sample_date": date.fromisoformat(row.sample_date),
                    "sample_time": _time_or_none(row.sample_time),
                    "sampler_name": row.sampler_name,
                    "latitude": row.latitude,
                    "longitude": row.longitude,
                    "stream_name": row.stream_name,
                    "lab_name": row.lab_name,
                    "import_id": _uuid_or_none(row.import_id),
                    "source_file_id": _uuid_or_none(row.source_file_id),
                }
                for row in rows
            ],
            key_columns=("outfall_id", "sample_date", "sample_time"),
        )

        results: list[UpsertedSamplingEvent] = []
        size = max(1, batch_size)
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = insert(SamplingEvent).values(chunk)
            stmt = stmt.on_conflict_do_update(
                constraint=SAMPLING_EVENT_UNIQUE_CONSTRAINT,
                set_={
                    **{column: stmt.excluded[column] for column in _MERGED_EVENT_COLUMNS},
                    "updated_at": func.now(),
                },
            ).returning(
                SamplingEvent.id,
                SamplingEvent.outfall_id,
                SamplingEvent.sample_date,
                SamplingEvent.sample_time,
                # xmax is 0 only for tuples inserted by this statement.
                literal_column("(xmax = 0)").label("inserted"),
            )
            try:
                returned = self._session.execute(stmt).all()
            except SQLAlchemyError as exc:
                raise LabDataPersistenceError(f"Failed to upsert sampling events: {exc}") from exc
            for event_id, outfall_id, sample_date, sample_time, inserted in returned:
                results.append(
                    UpsertedSamplingEvent(
                        key=(str(outfall_id), sample_date.isoformat(), _format_time(sample_time)),
                        id=str(event_id),
                        inserted=bool(inserted),
                    )
                )
        return results

    def insert_lab_results(
        self,
        rows: Sequence[LabResultRow],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert results, ignoring ones already stored for the same event and
        parameter. Returns the number of newly created rows.
        """

        if not rows:
            return 0

        payloads = self._deduplicate(
            [
                {
                    "sampling_event_id": uuid.UUID(row.sampling_event_id),
                    "parameter_id": uuid.UUID(row.parameter_id),
                    "result_value": row.result_value,
                    "unit": row.unit,
                    "below_detection": row.below_detection,
                    "qualifier": row.qualifier,
                    "analysis_date": _date_or_none(row.analysis_date),
                    "hold_time_days": row.hold_time_days,
                    "hold_time_compliant": row.hold_time_compliant,
                    "import_id": _uuid_or_none(row.import_id),
                    "raw_parameter_name": row.raw_parameter_name,
                    "raw_value": row.raw_value,
                    "row_number": row.row_number,
                }
                for row in rows
            ],
            key_columns=("sampling_event_id", "parameter_id"),
        )

        inserted = 0
        size = max(1, batch_size)
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = (
                insert(LabResult)
                .values(chunk)
                .on_conflict_do_nothing(constraint=LAB_RESULT_UNIQUE_CONSTRAINT)
                .returning(LabResult.id)
            )
            try:
                inserted += len(self._session.scalars(stmt).all())
            except SQLAlchemyError as exc:
                raise LabDataPersistenceError(f"Failed to insert lab results: {exc}") from exc
        return inserted

    @staticmethod
    def _deduplicate(
        payloads: Sequence[dict[str, Any]],
        *,
        key_columns: tuple[str, ...],
    ) -> list[dict[str, Any]]:
        # ON CONFLICT cannot touch the same row twice in one statement.
        seen: set[tuple[Any, ...]] = set()
        deduped: list[dict[str, Any]] = []
        for payload in payloads:
            key = tuple(payload[column] for column in key_columns)
            if key in seen:
                continue
            seen.add(key)
            deduped.append(payload)
        return deduped
