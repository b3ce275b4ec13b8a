"""
edd/fields.py

Canonicalization of raw EDD cell text: dates, times, numeric values, coordinates.

Every function here is total: unparseable input yields None instead of raising,
and the caller decides whether that is a validation issue.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, timedelta

EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_MIN = 30000
EXCEL_SERIAL_MAX = 60000

NOT_SAMPLED_TOKENS = frozenset({"ns", "nr"})

_US_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_ISO_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_COLON_TIME = re.compile(r"^(\d{1,2}):(\d{2})")
_COMPACT_TIME = re.compile(r"^(\d{2})(\d{2})$")
_LESS_THAN = re.compile(r"^<\s*([0-9.]+)$")
_GREATER_THAN = re.compile(r"^>\s*([0-9.]+)$")
_LEADING_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class ParsedValue:
    value: float | None
    below_detection: bool
    qualifier: str | None
    raw: str


def _clean(raw: object) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def _leading_float(text: str) -> float | None:
    """
    Parse the longest numeric prefix of ``text`` ("1.5 mg/L" -> 1.5).
    """

    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    try:
        number = float(match.group(0))
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_date(raw: object) -> str | None:
    """
    Normalize a sample/analysis date cell to ``YYYY-MM-DD``.

    Accepts Excel serial numbers (epoch 1899-12-30), ``M/D/YYYY`` and
    ``M-D-YYYY``, and strings that start with an ISO date.
    """

    text = _clean(raw)
    if not text:
        return None

    try:
        serial = float(text)
    except ValueError:
        serial = None
    if serial is not None and EXCEL_SERIAL_MIN < serial < EXCEL_SERIAL_MAX:
        return (EXCEL_EPOCH + timedelta(days=math.floor(serial))).isoformat()

    match = _US_DATE.match(text)
    if match:
        month, day, year = match.groups()
        return _valid_iso(int(year), int(month), int(day))

    match = _ISO_DATE_PREFIX.match(text)
    if match:
        year, month, day = match.groups()
        return _valid_iso(int(year), int(month), int(day))
    return None


def _valid_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_time(raw: object) -> str | None:
    text = _clean(raw)
    if not text:
        return None

    match = _COLON_TIME.match(text) or _COMPACT_TIME.match(text)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_value(raw_value: object, raw_qualifier: object = None) -> ParsedValue:
    """
    Split a lab value cell into numeric value, detection flag and qualifier.

    A ``<`` prefix in the value cell wins over the separate qualifier column.
    """

    value_text = _clean(raw_value)
    qualifier_text = _clean(raw_qualifier)

    if not value_text or value_text.lower() in NOT_SAMPLED_TOKENS:
        return ParsedValue(None, False, qualifier_text or None, value_text)

    match = _LESS_THAN.match(value_text)
    if match:
        return ParsedValue(_leading_float(match.group(1)), True, "<", value_text)

    match = _GREATER_THAN.match(value_text)
    if match:
        return ParsedValue(_leading_float(match.group(1)), False, ">", value_text)

    number = _leading_float(value_text)
    if number is None:
        return ParsedValue(None, False, qualifier_text or None, value_text)

    return ParsedValue(number, qualifier_text == "<", qualifier_text or None, value_text)


def parse_coordinate(raw: object) -> float | None:
    text = _clean(raw)
    if not text:
        return None
    return _leading_float(text)


def days_between(start_iso: str, end_iso: str) -> float | None:
    """Elapsed days between two ISO dates, rounded to 0.1 day."""

    try:
        start = date.fromisoformat(start_iso)
        end = date.fromisoformat(end_iso)
    except ValueError:
        return None
    return round((end - start).days * 10) / 10
