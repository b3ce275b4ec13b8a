from __future__ import annotations

import io
from datetime import datetime

import openpyxl
import pytest

from edd.errors import EDDFormatError
from edd.reader import cell_to_text, detect_format, read_grid


@pytest.mark.parametrize(
    "file_name, mime_type, expected",
    [
        ("results.XLSX", None, "xlsx"),
        ("results.xls", None, "xls"),
        ("results.tsv", None, "csv"),
        ("upload", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
        ("upload", "application/vnd.ms-excel", "xls"),
        ("upload", "text/csv", "csv"),
        ("upload", None, "xlsx"),
    ],
)
def test_detect_format(file_name: str, mime_type: str | None, expected: str) -> None:
    assert detect_format(file_name, mime_type) == expected


def test_cell_to_text() -> None:
    assert cell_to_text(None) == ""
    assert cell_to_text(datetime(2024, 1, 5)) == "2024-01-05"
    assert cell_to_text(datetime(1899, 12, 30, 9, 30)) == "09:30"
    assert cell_to_text(datetime(1899, 12, 30, 0, 0)) == "00:00"
    assert cell_to_text(datetime(1900, 1, 1)) == "1900-01-01"
    assert cell_to_text(float("nan")) == ""
    assert cell_to_text(1.5) == "1.5"
    assert cell_to_text(7) == "7"
    assert cell_to_text("  Iron ") == "Iron"


def test_csv_with_bom_and_trailing_blank_rows() -> None:
    content = b"\xef\xbb\xbfPermit#,Value\nWV1,1.5\n,\n\n"
    assert read_grid(content, "csv") == [["Permit#", "Value"], ["WV1", "1.5"]]


def test_tab_delimited_text() -> None:
    content = b"Permit#\tParameter\tValue\nWV1\tIron, Total\t1.5\n"
    assert read_grid(content, "csv") == [["Permit#", "Parameter", "Value"], ["WV1", "Iron, Total", "1.5"]]


def test_xlsx_first_sheet_is_read() -> None:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["Permit#", "Sample Date FLD", "Value"])
    sheet.append(["WV1", datetime(2024, 1, 15), 0.25])
    sheet.append([None, None, None])
    workbook.create_sheet("Notes").append(["ignored"])
    buffer = io.BytesIO()
    workbook.save(buffer)

    grid = read_grid(buffer.getvalue(), "xlsx")

    assert grid == [["Permit#", "Sample Date FLD", "Value"], ["WV1", "2024-01-15", "0.25"]]


def test_corrupt_xlsx_is_format_error() -> None:
    with pytest.raises(EDDFormatError, match="invalid or corrupt"):
        read_grid(b"definitely not a zip archive", "xlsx")


def test_unknown_format() -> None:
    with pytest.raises(EDDFormatError, match="Unsupported format"):
        read_grid(b"", "pdf")
