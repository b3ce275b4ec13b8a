"""
db/models/data_import.py

Tracking row for one parse/import pass over an uploaded file.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class DataImportStatus:
    PARSING = "parsing"
    PARSED = "parsed"
    FAILED = "failed"
    IMPORTED = "imported"


class DataImport(Base, TimestampMixin):
    __tablename__ = "data_imports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_category: Mapped[str] = mapped_column(String(64), nullable=False)
    source_system: Mapped[str] = mapped_column(String(64), nullable=False, default="lab_edd")
    import_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=DataImportStatus.PARSING,
    )
    imported_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    import_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    error_log: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    can_rollback: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    import_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    import_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_data_imports_organization_id", "organization_id"),
        Index("ix_data_imports_import_status", "import_status"),
    )
