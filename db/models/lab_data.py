"""
db/models/lab_data.py

Normalized lab measurements: one sampling event per outfall/date/time,
one lab result per event and parameter.
"""

import uuid
from datetime import date, time

from sqlalchemy import Boolean, Date, Float, ForeignKey, Index, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

SAMPLING_EVENT_UNIQUE_CONSTRAINT = "uq_sampling_events_outfall_date_time"
LAB_RESULT_UNIQUE_CONSTRAINT = "uq_lab_results_event_parameter"


class SamplingEvent(Base, TimestampMixin):
    __tablename__ = "sampling_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    outfall_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("outfalls.id", ondelete="CASCADE"),
        nullable=False,
    )
    sample_date: Mapped[date] = mapped_column(Date, nullable=False)
    sample_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    sampler_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    stream_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lab_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    import_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_imports.id", ondelete="SET NULL"),
        nullable=True,
    )
    source_file_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("file_processing_queue.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        # A missing sample time still identifies one event per outfall and date.
        UniqueConstraint(
            "outfall_id",
            "sample_date",
            "sample_time",
            name=SAMPLING_EVENT_UNIQUE_CONSTRAINT,
            postgresql_nulls_not_distinct=True,
        ),
        Index("ix_sampling_events_sample_date", "sample_date"),
        Index("ix_sampling_events_import_id", "import_id"),
    )


class LabResult(Base, TimestampMixin):
    __tablename__ = "lab_results"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sampling_event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sampling_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    parameter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("parameters.id", ondelete="RESTRICT"),
        nullable=False,
    )
    result_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(64), nullable=True)
    below_detection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    qualifier: Mapped[str | None] = mapped_column(String(32), nullable=True)
    analysis_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    hold_time_days: Mapped[float | None] = mapped_column(Float, nullable=True)
    hold_time_compliant: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    import_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_imports.id", ondelete="SET NULL"),
        nullable=True,
    )
    raw_parameter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    raw_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("sampling_event_id", "parameter_id", name=LAB_RESULT_UNIQUE_CONSTRAINT),
        Index("ix_lab_results_parameter_id", "parameter_id"),
        Index("ix_lab_results_import_id", "import_id"),
    )
