"""
edd/parser.py

EDD parsing pipeline: grid -> classified rows -> canonical records -> extraction.

Reference data (permits, outfalls, aliases, existing results) is fetched
through the EDDReferenceLookup protocol so the parser has no database
dependency of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from app.domain.lab_data import (
    ExtractedLabData,
    HoldTimeViolation,
    ParsedRecord,
    RowValidationError,
)
from edd.aggregator import (
    DEFAULT_MAX_HOLD_TIME_VIOLATIONS,
    DEFAULT_MAX_STORED_RECORDS,
    DEFAULT_MAX_VALIDATION_ERRORS,
    ExtractionAggregator,
)
from edd.compliance import DuplicateIndex, check_hold_time, max_hold_days
from edd.errors import EDDResourceLimitError
from edd.fields import parse_coordinate, parse_date, parse_time, parse_value
from edd.headers import EDDColumn, classify_rows
from edd.reader import detect_format, read_grid
from edd.resolver import (
    AliasCache,
    KnownOutfall,
    OutfallAliasEntry,
    OutfallResolver,
    ParameterAliasEntry,
    ParameterResolver,
    PendingOutfallAlias,
)

logger = logging.getLogger(__name__)

PARSER_VERSION = "5.0.0"
DEFAULT_MAX_ROWS = 50_000
DEFAULT_MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024


class EDDReferenceLookup(Protocol):
    def load_parameter_aliases(self) -> dict[str, ParameterAliasEntry]:
        ...

    def load_permit_ids(self, permit_numbers: Sequence[str]) -> dict[str, str]:
        ...

    def load_outfalls(self, permit_ids: Sequence[str]) -> list[KnownOutfall]:
        ...

    def load_outfall_aliases(
        self,
        organization_id: str,
        permit_ids: Sequence[str],
    ) -> dict[tuple[str, str], OutfallAliasEntry]:
        ...

    def load_existing_result_keys(
        self,
        permit_numbers: Sequence[str],
        earliest: str,
        latest: str,
    ) -> set[str]:
        ...


@dataclass(frozen=True)
class ParseLimits:
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    max_rows: int = DEFAULT_MAX_ROWS
    max_stored_records: int = DEFAULT_MAX_STORED_RECORDS
    max_validation_errors: int = DEFAULT_MAX_VALIDATION_ERRORS
    max_hold_time_violations: int = DEFAULT_MAX_HOLD_TIME_VIOLATIONS


@dataclass(frozen=True)
class ParseOutcome:
    extraction: ExtractedLabData
    pending_outfall_aliases: list[PendingOutfallAlias] = field(default_factory=list)


def _cell(row: Sequence[str], index: int) -> str:
    if index >= len(row):
        return ""
    value = row[index]
    return value.strip() if value else ""


def ensure_file_size(size_bytes: int, max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES) -> None:
    if size_bytes > max_file_size_bytes:
        raise EDDResourceLimitError(
            f"File is too large ({size_bytes / 1024 / 1024:.1f}MB). "
            f"Maximum is {max_file_size_bytes // (1024 * 1024)}MB."
        )


def ensure_row_count(total_rows: int, max_rows: int = DEFAULT_MAX_ROWS) -> None:
    if total_rows > max_rows:
        raise EDDResourceLimitError(
            f"File has {total_rows:,} rows, which exceeds the {max_rows:,} row limit. "
            "Please split into smaller files."
        )


def sample_date_window(rows: Sequence[Sequence[str]]) -> tuple[str, str] | None:
    dates = [parsed for parsed in (parse_date(_cell(row, EDDColumn.SAMPLE_DATE)) for row in rows) if parsed]
    if not dates:
        return None
    return min(dates), max(dates)


class EDDParser:
    """
    Parse one EDD file into an ExtractedLabData report.

    A parser instance holds no state between calls; the alias cache and
    aggregator are created fresh for each ``parse_grid`` invocation.
    """

    def __init__(
        self,
        *,
        reference_lookup: EDDReferenceLookup,
        limits: ParseLimits | None = None,
        log_validation_errors: bool = False,
    ) -> None:
        self._lookup = reference_lookup
        self._limits = limits or ParseLimits()
        self._log_validation_errors = log_validation_errors

    def parse_file(
        self,
        content: bytes,
        *,
        file_name: str,
        mime_type: str | None = None,
        organization_id: str | None = None,
        import_id: str | None = None,
    ) -> ParseOutcome:
        ensure_file_size(len(content), self._limits.max_file_size_bytes)
        file_format = detect_format(file_name, mime_type)
        logger.info("Parsing EDD file file_name=%s format=%s bytes=%s", file_name, file_format, len(content))
        grid = read_grid(content, file_format)
        return self.parse_grid(
            grid,
            file_format=file_format,
            organization_id=organization_id,
            import_id=import_id,
        )

    def parse_grid(
        self,
        grid: Sequence[Sequence[str]],
        *,
        file_format: str,
        organization_id: str | None = None,
        import_id: str | None = None,
    ) -> ParseOutcome:
        sheet = classify_rows(grid)
        data_rows = sheet.data_rows
        total_rows = len(data_rows)
        ensure_row_count(total_rows, self._limits.max_rows)
        logger.info("EDD rows classified data_rows=%s column_count=%s", total_rows, sheet.column_count)

        cache = AliasCache(parameter_aliases=self._lookup.load_parameter_aliases())
        parameter_resolver = ParameterResolver(cache)
        outfall_resolver = self._build_outfall_resolver(cache, data_rows, organization_id)
        duplicates = self._build_duplicate_index(data_rows)

        aggregator = ExtractionAggregator(
            max_stored_records=self._limits.max_stored_records,
            max_validation_errors=self._limits.max_validation_errors,
            max_hold_time_violations=self._limits.max_hold_time_violations,
        )

        # First data row is spreadsheet row 2 plus any descriptor rows.
        first_row_number = 2 + sheet.descriptor_rows_skipped
        for offset, row in enumerate(data_rows):
            self._parse_row(
                row,
                row_number=first_row_number + offset,
                aggregator=aggregator,
                parameter_resolver=parameter_resolver,
                outfall_resolver=outfall_resolver,
                duplicates=duplicates,
            )

        pending = list(cache.pending_outfall_aliases) if organization_id else []
        extraction = aggregator.build(
            file_format=file_format,
            parser_version=PARSER_VERSION,
            column_count=sheet.column_count,
            total_rows=total_rows,
            header_warnings=sheet.header_warnings,
            has_outfall_data=outfall_resolver.has_outfall_data,
            outfall_aliases_created=len(pending),
            import_id=import_id,
        )
        return ParseOutcome(extraction=extraction, pending_outfall_aliases=pending)

    def _build_outfall_resolver(
        self,
        cache: AliasCache,
        data_rows: Sequence[Sequence[str]],
        organization_id: str | None,
    ) -> OutfallResolver:
        permit_numbers = sorted(
            {_cell(row, EDDColumn.PERMIT_NUMBER) for row in data_rows} - {""}
        )
        permit_ids: dict[str, str] = {}
        known_outfalls: list[KnownOutfall] = []
        if permit_numbers:
            permit_ids = self._lookup.load_permit_ids(permit_numbers)
            if permit_ids:
                known_outfalls = self._lookup.load_outfalls(list(permit_ids.values()))

        if known_outfalls:
            logger.info(
                "Outfall matching enabled outfalls=%s permits=%s", len(known_outfalls), len(permit_numbers)
            )
            if organization_id:
                cache.outfall_aliases.update(
                    self._lookup.load_outfall_aliases(organization_id, list(permit_ids.values()))
                )
        else:
            logger.info("Outfall matching skipped permits=%s", len(permit_numbers))

        return OutfallResolver(cache, known_outfalls=known_outfalls, permit_ids=permit_ids)

    def _build_duplicate_index(self, data_rows: Sequence[Sequence[str]]) -> DuplicateIndex:
        permit_numbers = sorted(
            {_cell(row, EDDColumn.PERMIT_NUMBER) for row in data_rows} - {""}
        )
        window = sample_date_window(data_rows)
        if not permit_numbers or window is None:
            return DuplicateIndex()
        earliest, latest = window
        keys = self._lookup.load_existing_result_keys(permit_numbers, earliest, latest)
        logger.info("Loaded existing lab result keys count=%s window=%s..%s", len(keys), earliest, latest)
        return DuplicateIndex(keys)

    def _record_validation_error(self, aggregator: ExtractionAggregator, error: RowValidationError) -> None:
        aggregator.add_validation_error(error)
        if self._log_validation_errors:
            logger.warning(
                "EDD row validation issue row=%s column=%s message=%s",
                error.row_number,
                error.column,
                error.message,
            )

    def _parse_row(
        self,
        row: Sequence[str],
        *,
        row_number: int,
        aggregator: ExtractionAggregator,
        parameter_resolver: ParameterResolver,
        outfall_resolver: OutfallResolver,
        duplicates: DuplicateIndex,
    ) -> None:
        if not any(cell and cell.strip() for cell in row):
            aggregator.skip_row()
            return

        parameter_raw = _cell(row, EDDColumn.PARAMETER)
        parameter = parameter_resolver.resolve(parameter_raw)
        if parameter.is_ignored:
            if not parameter_raw:
                self._record_validation_error(
                    aggregator,
                    RowValidationError(row_number=row_number, column="Parameter", message="Missing parameter"),
                )
            aggregator.skip_row()
            return

        permit_number = _cell(row, EDDColumn.PERMIT_NUMBER)
        outfall_raw = _cell(row, EDDColumn.OUTFALL)
        sample_date_raw = _cell(row, EDDColumn.SAMPLE_DATE)
        analysis_date_raw = _cell(row, EDDColumn.ANALYSIS_DATE)
        sample_date = parse_date(sample_date_raw)
        analysis_date = parse_date(analysis_date_raw)
        sample_time_raw = _cell(row, EDDColumn.SAMPLE_TIME)
        sample_time = parse_time(sample_time_raw)

        if not permit_number:
            self._record_validation_error(
                aggregator,
                RowValidationError(row_number=row_number, column="Permit#", message="Missing permit number"),
            )
        if sample_date is None and sample_date_raw:
            self._record_validation_error(
                aggregator,
                RowValidationError(
                    row_number=row_number,
                    column="Sample Date FLD",
                    message=f'Invalid date: "{sample_date_raw}"',
                    value=sample_date_raw,
                ),
            )
        if analysis_date is None and analysis_date_raw:
            self._record_validation_error(
                aggregator,
                RowValidationError(
                    row_number=row_number,
                    column="Date Analyzed",
                    message=f'Invalid analysis date: "{analysis_date_raw}"',
                    value=analysis_date_raw,
                ),
            )
        if sample_time is None and sample_time_raw:
            self._record_validation_error(
                aggregator,
                RowValidationError(
                    row_number=row_number,
                    column="Sample Time FLD",
                    message=f'Invalid time: "{sample_time_raw}"',
                    value=sample_time_raw,
                ),
            )

        outfall = outfall_resolver.resolve(outfall_raw, permit_number)
        outfall_key = outfall.canonical_id if outfall is not None else outfall_raw
        is_duplicate = duplicates.contains(
            permit_number, outfall_key, sample_date, sample_time, parameter.canonical
        )

        value = parse_value(_cell(row, EDDColumn.VALUE), _cell(row, EDDColumn.QUALIFIER))
        hold_time = check_hold_time(sample_date, analysis_date, parameter.canonical)
        if hold_time.compliant is False:
            aggregator.add_hold_time_violation(
                HoldTimeViolation(
                    row_number=row_number,
                    parameter=parameter.canonical,
                    outfall=outfall_raw,
                    sample_date=sample_date or "",
                    analysis_date=analysis_date or "",
                    days_held=hold_time.days if hold_time.days is not None else 0.0,
                    max_hold_days=max_hold_days(parameter.canonical),
                )
            )

        aggregator.add_record(
            ParsedRecord(
                row_number=row_number,
                permittee_name=_cell(row, EDDColumn.PERMITTEE_NAME),
                permit_number=permit_number,
                site_name=_cell(row, EDDColumn.SITE_NAME),
                site_state=_cell(row, EDDColumn.SITE_STATE),
                site_county=_cell(row, EDDColumn.SITE_COUNTY),
                lab_name=_cell(row, EDDColumn.LAB_NAME),
                sampler=_cell(row, EDDColumn.SAMPLER),
                outfall_raw=outfall_raw,
                outfall_matched=outfall.canonical_id if outfall else None,
                outfall_db_id=outfall.outfall_db_id if outfall else None,
                outfall_match_method=outfall.match_method if outfall else None,
                latitude=parse_coordinate(_cell(row, EDDColumn.LATITUDE)),
                longitude=parse_coordinate(_cell(row, EDDColumn.LONGITUDE)),
                stream_name=_cell(row, EDDColumn.STREAM_NAME),
                sample_date=sample_date,
                sample_time=sample_time,
                analysis_date=analysis_date,
                parameter_raw=parameter_raw,
                parameter_canonical=parameter.canonical,
                parameter_id=parameter.parameter_id,
                value=value.value,
                value_raw=value.raw,
                unit=_cell(row, EDDColumn.UNITS),
                below_detection=value.below_detection,
                data_qualifier=value.qualifier,
                comments=_cell(row, EDDColumn.COMMENTS) or None,
                hold_time_days=hold_time.days,
                hold_time_compliant=hold_time.compliant,
                is_duplicate=is_duplicate,
            ),
            parameter_source=parameter.source,
        )
