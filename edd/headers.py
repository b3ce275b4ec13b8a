"""
edd/headers.py

Header validation and non-data row stripping for EDD worksheets.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Sequence

from edd.errors import EDDFormatError

logger = logging.getLogger(__name__)

MIN_HEADER_COLUMNS = 20
STANDARD_COLUMN_COUNT = 26
EXTENDED_COLUMN_COUNT = 27
MAX_SILENT_HEADER_MISMATCHES = 6

# Canonical 26-column EDD template, lowercase + trimmed.
EXPECTED_HEADERS: tuple[str, ...] = (
    "permittee name",
    "permittee address",
    "permittee city",
    "permittee state",
    "permit#",
    "permit type",
    "smcra #",
    "site #/name",
    "site city",
    "site state",
    "site county",
    "company sampling/analyzing",
    "responsible party",
    "sample location name",
    "sample location latitude",
    "sample location longitude",
    "named stream",
    "sample location type",
    "sample date fld",
    "sample time fld",
    "date analyzed",
    "parameter",
    "value",
    "units",
    "data qualifier",
    "comments",
)

TYPE_DESCRIPTOR_TOKENS = frozenset(
    {"txt", "num", "int", "date", "varchar", "float", "double", "text", "number", "string"}
)

_PERMIT_SPACE_HASH = re.compile(r"permit\s+#")


class EDDColumn:
    """
    Zero-based positions of the EDD columns read by the parser.
    """

    PERMITTEE_NAME = 0
    PERMIT_NUMBER = 4
    SITE_NAME = 7
    SITE_STATE = 9
    SITE_COUNTY = 10
    LAB_NAME = 11
    SAMPLER = 12
    OUTFALL = 13
    LATITUDE = 14
    LONGITUDE = 15
    STREAM_NAME = 16
    SAMPLE_DATE = 18
    SAMPLE_TIME = 19
    ANALYSIS_DATE = 20
    PARAMETER = 21
    VALUE = 22
    UNITS = 23
    QUALIFIER = 24
    COMMENTS = 25


@dataclass(frozen=True)
class HeaderValidation:
    column_count: int
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClassifiedSheet:
    """
    Result of header validation and descriptor-row stripping.
    """

    column_count: int
    header_warnings: list[str]
    data_rows: list[tuple[str, ...]]
    descriptor_rows_skipped: int = 0


def normalize_header(value: object) -> str:
    """
    Lowercase/trim a header cell and correct known misspellings.
    """

    text = str(value if value is not None else "").strip().lower()
    text = text.replace("permitee", "permittee")
    return _PERMIT_SPACE_HASH.sub("permit#", text, count=1)


def validate_headers(header_row: Sequence[object]) -> HeaderValidation:
    """
    Validate an EDD header row and detect the 26/27-column variant.

    Raises EDDFormatError when the row is too short or lacks the permit,
    parameter or value columns. Positional differences are non-fatal.
    """

    if not header_row or len(header_row) < MIN_HEADER_COLUMNS:
        found = len(header_row) if header_row else 0
        raise EDDFormatError(
            f"Header mismatch: expected ~{STANDARD_COLUMN_COUNT} columns, found {found}. "
            "This file does not match the expected EDD format."
        )

    normalized = [normalize_header(cell) for cell in header_row]

    has_permit = "permit" in " ".join(normalized)
    has_parameter = "parameter" in normalized
    has_value = "value" in normalized
    if not (has_permit and has_parameter and has_value):
        missing = [
            label
            for label, present in (
                ('"Permit#"', has_permit),
                ('"Parameter"', has_parameter),
                ('"Value"', has_value),
            )
            if not present
        ]
        raise EDDFormatError(
            "This file does not appear to be an EDD format. "
            f"Missing key columns: {', '.join(missing)}. "
            f"Found headers: {', '.join(normalized[:10])}..."
        )

    mismatches = [
        f'Column {index + 1}: expected "{expected}", got "{actual}"'
        for index, (expected, actual) in enumerate(zip(EXPECTED_HEADERS, normalized))
        if expected != actual
    ]

    warnings: list[str] = []
    if mismatches:
        logger.info("EDD header variations count=%s details=%s", len(mismatches), mismatches)
        if len(mismatches) > MAX_SILENT_HEADER_MISMATCHES:
            warnings.append(
                f"{len(mismatches)} column headers differ from standard EDD format. "
                "Data may be mapped incorrectly."
            )

    is_extended = len(header_row) >= EXTENDED_COLUMN_COUNT and (
        not normalized[EXTENDED_COLUMN_COUNT - 1] or normalized[EXTENDED_COLUMN_COUNT - 1] == "column1"
    )
    column_count = EXTENDED_COLUMN_COUNT if is_extended else min(len(header_row), STANDARD_COLUMN_COUNT)
    return HeaderValidation(column_count=column_count, warnings=warnings)


def is_type_descriptor_row(row: Sequence[str]) -> bool:
    non_empty = [cell.strip().lower() for cell in row if cell and cell.strip()]
    return bool(non_empty) and all(cell in TYPE_DESCRIPTOR_TOKENS for cell in non_empty)


def strip_type_descriptor_rows(rows: Sequence[Sequence[str]]) -> tuple[list[tuple[str, ...]], int]:
    """
    Drop type-descriptor rows ("txt", "num", "date", ...) directly after the header.
    """

    start = 0
    while start < len(rows) and is_type_descriptor_row(rows[start]):
        logger.info("Skipping EDD type descriptor row cells=%s", list(rows[start][:5]))
        start += 1
    return [tuple(row) for row in rows[start:]], start


def classify_rows(grid: Sequence[Sequence[str]]) -> ClassifiedSheet:
    """
    Validate the header row and return the remaining data rows.
    """

    if len(grid) < 2:
        raise EDDFormatError("No data rows found. File contains only headers or is empty.")

    validation = validate_headers(grid[0])
    data_rows, skipped = strip_type_descriptor_rows(grid[1:])
    return ClassifiedSheet(
        column_count=validation.column_count,
        header_warnings=list(validation.warnings),
        data_rows=data_rows,
        descriptor_rows_skipped=skipped,
    )
