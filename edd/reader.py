"""
edd/reader.py

Load the first worksheet of an EDD upload into a grid of strings.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import zipfile
from datetime import date, datetime, time
from typing import Any, Iterable

import openpyxl
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from edd.errors import EDDFormatError

logger = logging.getLogger(__name__)

FORMAT_XLSX = "xlsx"
FORMAT_XLS = "xls"
FORMAT_CSV = "csv"

# openpyxl returns time-formatted cells on the Excel epoch day, midnight included.
_EXCEL_EPOCH_DATE = date(1899, 12, 30)
_EXCEL_TIME_ONLY_DATES = {_EXCEL_EPOCH_DATE, date(1899, 12, 31), date(1900, 1, 1)}


def detect_format(file_name: str, mime_type: str | None = None) -> str:
    """
    Detect the upload format by extension, then MIME type; defaults to xlsx.
    """

    lowered = (file_name or "").lower()
    if lowered.endswith(".xlsx"):
        return FORMAT_XLSX
    if lowered.endswith(".xls"):
        return FORMAT_XLS
    if lowered.endswith((".csv", ".tsv", ".txt")):
        return FORMAT_CSV

    mime = (mime_type or "").lower()
    if "spreadsheetml" in mime:
        return FORMAT_XLSX
    if "ms-excel" in mime:
        return FORMAT_XLS
    if "csv" in mime or "text" in mime:
        return FORMAT_CSV
    return FORMAT_XLSX


def cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.date() == _EXCEL_EPOCH_DATE or (
            value.date() in _EXCEL_TIME_ONLY_DATES and value.time() != time(0, 0)
        ):
            return value.strftime("%H:%M")
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        return repr(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value).strip()


def _rows_to_grid(rows: Iterable[Iterable[Any]]) -> list[list[str]]:
    grid = [[cell_to_text(cell) for cell in row] for row in rows]
    while grid and not any(cell for cell in grid[-1]):
        grid.pop()
    return grid


def _read_xlsx(content: bytes) -> list[list[str]]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError) as exc:
        raise EDDFormatError(f"Workbook is invalid or corrupt: {exc}") from exc

    try:
        if not workbook.sheetnames:
            raise EDDFormatError("No worksheet found in this file.")
        worksheet = workbook[workbook.sheetnames[0]]
        return _rows_to_grid(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_xls(content: bytes) -> list[list[str]]:
    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object, engine="xlrd")
    except IndexError as exc:
        raise EDDFormatError("No worksheet found in this file.") from exc
    except ValueError as exc:
        raise EDDFormatError(f"Workbook is invalid or corrupt: {exc}") from exc

    rows = []
    for row in frame.itertuples(index=False, name=None):
        rows.append([None if _is_missing(cell) else _unwrap_timestamp(cell) for cell in row])
    return _rows_to_grid(rows)


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _unwrap_timestamp(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def _read_csv(content: bytes) -> list[list[str]]:
    text = content.decode("utf-8-sig", errors="replace")
    first_line = text.split("\n", 1)[0]
    delimiter = "\t" if first_line.count("\t") > first_line.count(",") else ","
    try:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        return _rows_to_grid(reader)
    except csv.Error as exc:
        raise EDDFormatError(f"CSV file is malformed: {exc}") from exc


def read_grid(content: bytes, file_format: str) -> list[list[str]]:
    """
    Read the first worksheet (or the CSV body) as rows of trimmed strings.

    Trailing blank rows are dropped; blank rows inside the data are kept so
    row numbers stay aligned with the spreadsheet.
    """

    if file_format == FORMAT_XLSX:
        grid = _read_xlsx(content)
    elif file_format == FORMAT_XLS:
        grid = _read_xls(content)
    elif file_format == FORMAT_CSV:
        grid = _read_csv(content)
    else:
        raise EDDFormatError(f"Unsupported format: {file_format}")

    logger.info("EDD grid loaded format=%s rows=%s", file_format, len(grid))
    return grid
