"""
edd/aggregator.py

Accumulates per-row parse results into the bounded ExtractedLabData report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.domain.lab_data import (
    DateRange,
    ExtractedLabData,
    HoldTimeViolation,
    OutfallSummary,
    ParameterSummary,
    ParsedRecord,
    RowValidationError,
)
from edd.resolver import ParameterSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_STORED_RECORDS = 5_000
DEFAULT_MAX_VALIDATION_ERRORS = 50
DEFAULT_MAX_HOLD_TIME_VIOLATIONS = 50
MAX_LISTED_NAMES = 10
EMPTY_OUTFALL_KEY = "(empty)"


@dataclass
class _ParameterTally:
    total: int = 0
    below_detection: int = 0
    parameter_id: str | None = None


@dataclass
class _OutfallTally:
    matched_id: str | None = None
    outfall_db_id: str | None = None
    match_method: str | None = None
    count: int = 0


def _ordered_unique(values: list[str], value: str) -> None:
    if value and value not in values:
        values.append(value)


class ExtractionAggregator:
    """
    Collects records, counts and diagnostics while rows are parsed.

    Lists kept for storage are capped, but every count reflects the full
    file so warnings can report true totals.
    """

    def __init__(
        self,
        *,
        max_stored_records: int = DEFAULT_MAX_STORED_RECORDS,
        max_validation_errors: int = DEFAULT_MAX_VALIDATION_ERRORS,
        max_hold_time_violations: int = DEFAULT_MAX_HOLD_TIME_VIOLATIONS,
    ) -> None:
        self._max_stored_records = max_stored_records
        self._max_validation_errors = max_validation_errors
        self._max_hold_time_violations = max_hold_time_violations

        self._records: list[ParsedRecord] = []
        self._validation_errors: list[RowValidationError] = []
        self._validation_error_total = 0
        self._hold_time_violations: list[HoldTimeViolation] = []
        self._hold_time_violation_total = 0

        self._parameters: dict[str, _ParameterTally] = {}
        self._outfalls: dict[str, _OutfallTally] = {}
        self._unknown_parameters: list[str] = []
        self._permit_numbers: list[str] = []
        self._states: list[str] = []
        self._sites: list[str] = []
        self._lab_names: list[str] = []
        self._sample_dates: list[str] = []

        self.skipped_rows = 0
        self.duplicate_rows = 0
        self.parameters_resolved = 0
        self.outfalls_resolved = 0

    @property
    def parsed_rows(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[ParsedRecord]:
        return list(self._records)

    @property
    def validation_error_total(self) -> int:
        return self._validation_error_total

    def skip_row(self) -> None:
        self.skipped_rows += 1

    def add_validation_error(self, error: RowValidationError) -> None:
        self._validation_error_total += 1
        if len(self._validation_errors) < self._max_validation_errors:
            self._validation_errors.append(error)

    def add_hold_time_violation(self, violation: HoldTimeViolation) -> None:
        self._hold_time_violation_total += 1
        if len(self._hold_time_violations) < self._max_hold_time_violations:
            self._hold_time_violations.append(violation)

    def add_record(self, record: ParsedRecord, *, parameter_source: str) -> None:
        self._records.append(record)

        if parameter_source == ParameterSource.ALIAS:
            self.parameters_resolved += 1
        elif parameter_source == ParameterSource.UNKNOWN:
            _ordered_unique(self._unknown_parameters, record.parameter_raw)

        if record.is_duplicate:
            self.duplicate_rows += 1
        if record.outfall_db_id:
            self.outfalls_resolved += 1

        _ordered_unique(self._permit_numbers, record.permit_number)
        _ordered_unique(self._states, record.site_state.upper())
        _ordered_unique(self._sites, record.site_name)
        _ordered_unique(self._lab_names, record.lab_name)
        if record.sample_date:
            self._sample_dates.append(record.sample_date)

        tally = self._parameters.setdefault(
            record.parameter_canonical, _ParameterTally(parameter_id=record.parameter_id)
        )
        tally.total += 1
        if record.below_detection:
            tally.below_detection += 1
        if tally.parameter_id is None and record.parameter_id:
            tally.parameter_id = record.parameter_id

        outfall = self._outfalls.setdefault(
            record.outfall_raw or EMPTY_OUTFALL_KEY,
            _OutfallTally(
                matched_id=record.outfall_matched,
                outfall_db_id=record.outfall_db_id,
                match_method=record.outfall_match_method,
            ),
        )
        outfall.count += 1
        if record.outfall_matched:
            outfall.matched_id = record.outfall_matched
            outfall.outfall_db_id = record.outfall_db_id
            outfall.match_method = record.outfall_match_method

    def build_warnings(self, *, header_warnings: list[str], has_outfall_data: bool) -> list[str]:
        warnings = list(header_warnings)

        if self._unknown_parameters:
            warnings.append(
                f"{len(self._unknown_parameters)} unknown parameter name(s) passed through without "
                f"normalization: {', '.join(self._unknown_parameters[:MAX_LISTED_NAMES])}"
            )

        if not has_outfall_data:
            warnings.append(
                "No permits found in database for the permit numbers in this file. "
                "Outfall matching was skipped. Import the corresponding permits first for outfall validation."
            )
        else:
            unmatched = [name for name, tally in self._outfalls.items() if not tally.matched_id]
            if unmatched:
                warnings.append(
                    f"{len(unmatched)} outfall(s) could not be matched to existing permit outfalls: "
                    f"{', '.join(unmatched[:MAX_LISTED_NAMES])}"
                )

        if self._hold_time_violation_total:
            warnings.append(f"{self._hold_time_violation_total} potential hold time violation(s) detected.")
            if self._hold_time_violation_total > len(self._hold_time_violations):
                warnings.append(
                    f"Hold time violations truncated: showing {len(self._hold_time_violations)} "
                    f"of {self._hold_time_violation_total}."
                )

        if self._validation_error_total:
            warnings.append(f"{self._validation_error_total} row-level validation issue(s) found.")
            if self._validation_error_total > len(self._validation_errors):
                warnings.append(
                    f"Validation issues truncated: showing {len(self._validation_errors)} "
                    f"of {self._validation_error_total}."
                )

        if self.duplicate_rows:
            warnings.append(
                f"{self.duplicate_rows} duplicate record(s) detected, already present in the database. "
                "These will be skipped during import."
            )

        if self.parsed_rows > self._max_stored_records:
            warnings.append(
                f"Records truncated: showing {self._max_stored_records:,} of {self.parsed_rows:,} parsed "
                "records in extraction preview. Full data is preserved in the original file."
            )
        return warnings

    def summary_text(self) -> str:
        sampling_events = {
            (record.permit_number, record.outfall_raw, record.sample_date, record.sample_time)
            for record in self._records
        }
        site_count = len(self._sites)
        site_label = "site" if site_count == 1 else "sites"
        return (
            f"{self.parsed_rows} lab results from {len(sampling_events)} sampling events across "
            f"{site_count} {site_label}. {len(self._parameters)} parameters, {len(self._outfalls)} outfalls."
        )

    def build(
        self,
        *,
        file_format: str,
        parser_version: str,
        column_count: int,
        total_rows: int,
        header_warnings: list[str],
        has_outfall_data: bool,
        outfall_aliases_created: int,
        import_id: str | None = None,
    ) -> ExtractedLabData:
        dates = sorted(self._sample_dates)
        parameter_summary = [
            ParameterSummary(
                canonical_name=name,
                parameter_id=tally.parameter_id,
                sample_count=tally.total,
                below_detection_count=tally.below_detection,
            )
            for name, tally in sorted(self._parameters.items(), key=lambda item: -item[1].total)
        ]
        outfall_summary = [
            OutfallSummary(
                raw_name=name,
                matched_id=tally.matched_id,
                outfall_db_id=tally.outfall_db_id,
                match_method=tally.match_method,
                sample_count=tally.count,
            )
            for name, tally in sorted(self._outfalls.items(), key=lambda item: -item[1].count)
        ]
        warnings = self.build_warnings(header_warnings=header_warnings, has_outfall_data=has_outfall_data)

        logger.info(
            "EDD extraction aggregated total_rows=%s parsed_rows=%s skipped_rows=%s duplicates=%s warnings=%s",
            total_rows,
            self.parsed_rows,
            self.skipped_rows,
            self.duplicate_rows,
            len(warnings),
        )

        return ExtractedLabData(
            file_format=file_format,
            parser_version=parser_version,
            column_count=column_count,
            total_rows=total_rows,
            parsed_rows=self.parsed_rows,
            skipped_rows=self.skipped_rows,
            duplicate_rows=self.duplicate_rows,
            permit_numbers=list(self._permit_numbers),
            states=list(self._states),
            sites=list(self._sites),
            lab_names=list(self._lab_names),
            date_range=DateRange(
                earliest=dates[0] if dates else None,
                latest=dates[-1] if dates else None,
            ),
            parameters_found=len(self._parameters),
            parameters_resolved=self.parameters_resolved,
            parameter_summary=parameter_summary,
            outfalls_found=len(self._outfalls),
            outfalls_resolved=self.outfalls_resolved,
            outfall_aliases_created=outfall_aliases_created,
            outfall_summary=outfall_summary,
            warnings=warnings,
            validation_errors=list(self._validation_errors),
            hold_time_violations=list(self._hold_time_violations),
            records=self._records[: self._max_stored_records],
            records_truncated=self.parsed_rows > self._max_stored_records,
            summary=self.summary_text(),
            import_id=import_id,
        )
