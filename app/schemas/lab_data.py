"""
app/schemas/lab_data.py

Schemas for lab data parse, extraction and import endpoints.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class DateRangeResponse(BaseModel):
    earliest: str | None = None
    latest: str | None = None


class LabDataParseResponse(BaseModel):
    queue_id: UUID
    status: str
    import_id: str | None = None
    file_format: str
    parser_version: str
    total_rows: int
    parsed_rows: int
    skipped_rows: int
    duplicate_rows: int
    parameters_found: int
    parameters_resolved: int
    outfalls_found: int
    outfalls_resolved: int
    outfall_aliases_created: int
    date_range: DateRangeResponse
    records_truncated: bool
    summary: str
    warnings: list[str] = Field(default_factory=list)


class LabDataExtractionResponse(BaseModel):
    queue_id: UUID
    extracted_data: dict[str, Any]


class LabDataImportResponse(BaseModel):
    success: bool = True
    events_created: int
    results_created: int
    skipped_no_parameter: int
    import_id: str | None = None
    excluded_records: int = 0
    duplicate_records: int = 0


class LabDataErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_log: list[str] = Field(default_factory=list)
