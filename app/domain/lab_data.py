"""
app/domain/lab_data.py

Domain models produced by the lab EDD parser and consumed by the importer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping

LAB_DATA_DOCUMENT_TYPE = "lab_data_edd"


class OutfallMatchMethod:
    EXACT = "exact"
    ZERO_STRIP = "zero_strip"
    DIGITS_ONLY = "digits_only"


def _known_fields(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    names = {item.name for item in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass(frozen=True)
class RowValidationError:
    """
    One row-level validation issue found while parsing an EDD row.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class HoldTimeViolation:
    row_number: int
    parameter: str
    outfall: str
    sample_date: str
    analysis_date: str
    days_held: float
    max_hold_days: int


@dataclass(frozen=True)
class ParsedRecord:
    """
    One canonicalized lab measurement. Created once per data row, never mutated.
    """

    row_number: int
    permittee_name: str
    permit_number: str
    site_name: str
    site_state: str
    site_county: str
    lab_name: str
    sampler: str
    outfall_raw: str
    outfall_matched: str | None
    outfall_db_id: str | None
    outfall_match_method: str | None
    latitude: float | None
    longitude: float | None
    stream_name: str
    sample_date: str | None
    sample_time: str | None
    analysis_date: str | None
    parameter_raw: str
    parameter_canonical: str
    parameter_id: str | None
    value: float | None
    value_raw: str
    unit: str
    below_detection: bool
    data_qualifier: str | None
    comments: str | None
    hold_time_days: float | None
    hold_time_compliant: bool | None
    is_duplicate: bool = False

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ParsedRecord":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class ParameterSummary:
    canonical_name: str
    parameter_id: str | None
    sample_count: int
    below_detection_count: int


@dataclass(frozen=True)
class OutfallSummary:
    raw_name: str
    matched_id: str | None
    outfall_db_id: str | None
    match_method: str | None
    sample_count: int


@dataclass(frozen=True)
class DateRange:
    earliest: str | None = None
    latest: str | None = None


@dataclass(frozen=True)
class ExtractedLabData:
    """
    Bounded-size extraction report stored on the queue entry for review.

    ``parsed_rows`` always counts every parsed record, even when ``records``
    was truncated for storage.
    """

    file_format: str
    parser_version: str
    column_count: int
    total_rows: int
    parsed_rows: int
    skipped_rows: int
    duplicate_rows: int
    permit_numbers: list[str]
    states: list[str]
    sites: list[str]
    lab_names: list[str]
    date_range: DateRange
    parameters_found: int
    parameters_resolved: int
    parameter_summary: list[ParameterSummary]
    outfalls_found: int
    outfalls_resolved: int
    outfall_aliases_created: int
    outfall_summary: list[OutfallSummary]
    warnings: list[str]
    validation_errors: list[RowValidationError]
    hold_time_violations: list[HoldTimeViolation]
    records: list[ParsedRecord]
    records_truncated: bool
    summary: str
    import_id: str | None = None
    document_type: str = LAB_DATA_DOCUMENT_TYPE

    def to_payload(self) -> dict[str, Any]:
        """
        Serialize into the JSON-compatible shape stored as ``extracted_data``.
        """

        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExtractedLabData":
        data = _known_fields(cls, payload)
        data["date_range"] = DateRange(**_known_fields(DateRange, payload.get("date_range") or {}))
        data["parameter_summary"] = [
            ParameterSummary(**_known_fields(ParameterSummary, item))
            for item in payload.get("parameter_summary") or []
        ]
        data["outfall_summary"] = [
            OutfallSummary(**_known_fields(OutfallSummary, item))
            for item in payload.get("outfall_summary") or []
        ]
        data["validation_errors"] = [
            RowValidationError(**_known_fields(RowValidationError, item))
            for item in payload.get("validation_errors") or []
        ]
        data["hold_time_violations"] = [
            HoldTimeViolation(**_known_fields(HoldTimeViolation, item))
            for item in payload.get("hold_time_violations") or []
        ]
        data["records"] = [ParsedRecord.from_payload(item) for item in payload.get("records") or []]
        for list_field in ("permit_numbers", "states", "sites", "lab_names", "warnings"):
            data[list_field] = list(payload.get(list_field) or [])
        return cls(**data)


@dataclass(frozen=True)
class LabDataImportSummary:
    """
    Outcome of committing one approved extraction into domain tables.
    """

    events_created: int
    results_created: int
    skipped_no_parameter: int
    import_id: str | None
    excluded_records: int = 0
    duplicate_records: int = 0
    event_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SamplingEventRow:
    """
    Insert payload for one sampling event; identity is
    ``(outfall_id, sample_date, sample_time)``.
    """

    organization_id: str | None
    outfall_id: str
    sample_date: str
    sample_time: str | None
    sampler_name: str | None
    latitude: float | None
    longitude: float | None
    stream_name: str | None
    lab_name: str | None
    import_id: str | None
    source_file_id: str | None

    @property
    def key(self) -> tuple[str, str, str | None]:
        return (self.outfall_id, self.sample_date, self.sample_time)


@dataclass(frozen=True)
class LabResultRow:
    sampling_event_id: str
    parameter_id: str
    result_value: float | None
    unit: str | None
    below_detection: bool
    qualifier: str | None
    analysis_date: str | None
    hold_time_days: float | None
    hold_time_compliant: bool | None
    import_id: str | None
    raw_parameter_name: str | None
    raw_value: str | None
    row_number: int | None


@dataclass(frozen=True)
class UpsertedSamplingEvent:
    key: tuple[str, str, str | None]
    id: str
    inserted: bool
