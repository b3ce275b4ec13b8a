"""
tests/test_edd_fields.py

Unit tests for EDD cell canonicalization: dates, times, values, coordinates.
"""

from __future__ import annotations

import pytest

from edd.fields import days_between, parse_coordinate, parse_date, parse_time, parse_value


class TestParseDate:
    def test_excel_serial_uses_1899_12_30_epoch(self) -> None:
        assert parse_date("44927") == "2023-01-01"

    def test_excel_serial_fraction_is_floored(self) -> None:
        assert parse_date("44927.75") == "2023-01-01"

    def test_numeric_cell_outside_serial_range_is_rejected(self) -> None:
        assert parse_date("12345") is None

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1/5/2024", "2024-01-05"),
            ("01-15-2024", "2024-01-15"),
            ("2024-03-07", "2024-03-07"),
            ("2024-03-07T00:00:00", "2024-03-07"),
            ("  2/29/2024 ", "2024-02-29"),
        ],
    )
    def test_text_formats(self, raw: str, expected: str) -> None:
        assert parse_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "abc", "13/45/2023", "2023-02-30"])
    def test_unparseable_returns_none(self, raw: object) -> None:
        assert parse_date(raw) is None


class TestParseTime:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("9:05", "09:05"),
            ("09:30:00", "09:30"),
            ("0930", "09:30"),
            ("14:00", "14:00"),
            ("23:59", "23:59"),
            ("0000", "00:00"),
        ],
    )
    def test_supported_shapes(self, raw: str, expected: str) -> None:
        assert parse_time(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "noon", "930", "2400", "25:00", "12:75", "9999"])
    def test_unrecognized_returns_none(self, raw: object) -> None:
        assert parse_time(raw) is None


class TestParseValue:
    def test_less_than_prefix_marks_below_detection(self) -> None:
        parsed = parse_value("<0.5")
        assert parsed.value == 0.5
        assert parsed.below_detection is True
        assert parsed.qualifier == "<"
        assert parsed.raw == "<0.5"

    def test_less_than_prefix_wins_over_qualifier_column(self) -> None:
        parsed = parse_value("< 2", "J")
        assert parsed.value == 2.0
        assert parsed.qualifier == "<"

    def test_greater_than_prefix(self) -> None:
        parsed = parse_value(">100")
        assert parsed.value == 100.0
        assert parsed.below_detection is False
        assert parsed.qualifier == ">"

    @pytest.mark.parametrize("raw", ["NS", "nr", ""])
    def test_not_sampled_tokens_have_no_value(self, raw: str) -> None:
        parsed = parse_value(raw)
        assert parsed.value is None
        assert parsed.below_detection is False

    def test_leading_number_is_extracted(self) -> None:
        assert parse_value("1.5 mg/L").value == 1.5
        assert parse_value("1e3").value == 1000.0

    def test_qualifier_column_less_than_sets_below_detection(self) -> None:
        parsed = parse_value("0.2", "<")
        assert parsed.value == 0.2
        assert parsed.below_detection is True
        assert parsed.qualifier == "<"

    def test_non_numeric_keeps_qualifier(self) -> None:
        parsed = parse_value("pending", "J")
        assert parsed.value is None
        assert parsed.qualifier == "J"
        assert parsed.raw == "pending"


def test_parse_coordinate() -> None:
    assert parse_coordinate("-81.5") == -81.5
    assert parse_coordinate("38.25N") == 38.25
    assert parse_coordinate("") is None
    assert parse_coordinate("N38") is None


def test_days_between_rounds_to_tenths() -> None:
    assert days_between("2024-01-01", "2024-01-11") == 10.0
    assert days_between("2024-01-11", "2024-01-01") == -10.0
    assert days_between("bad", "2024-01-01") is None
