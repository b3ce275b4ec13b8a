from __future__ import annotations

import unittest

from edd.errors import EDDFormatError
from edd.headers import (
    EXPECTED_HEADERS,
    classify_rows,
    is_type_descriptor_row,
    normalize_header,
    strip_type_descriptor_rows,
    validate_headers,
)


class TestValidateHeaders(unittest.TestCase):
    def test_standard_header_has_26_columns_and_no_warnings(self) -> None:
        result = validate_headers(list(EXPECTED_HEADERS))
        self.assertEqual(result.column_count, 26)
        self.assertEqual(result.warnings, [])

    def test_normalize_header_fixes_known_misspellings(self) -> None:
        self.assertEqual(normalize_header("  Permitee Name "), "permittee name")
        self.assertEqual(normalize_header("Permit #"), "permit#")
        self.assertEqual(normalize_header(None), "")

    def test_extended_variant_detected_from_blank_or_column1(self) -> None:
        for extra in ("", "Column1"):
            with self.subTest(extra=extra):
                result = validate_headers([*EXPECTED_HEADERS, extra])
                self.assertEqual(result.column_count, 27)

    def test_named_27th_column_is_not_extended(self) -> None:
        result = validate_headers([*EXPECTED_HEADERS, "Reviewer"])
        self.assertEqual(result.column_count, 26)

    def test_short_header_is_rejected(self) -> None:
        with self.assertRaises(EDDFormatError) as ctx:
            validate_headers(list(EXPECTED_HEADERS[:10]))
        self.assertIn("Header mismatch", str(ctx.exception))
        self.assertIn("found 10", str(ctx.exception))

    def test_missing_key_column_is_rejected(self) -> None:
        headers = list(EXPECTED_HEADERS)
        headers[21] = "analyte"
        with self.assertRaises(EDDFormatError) as ctx:
            validate_headers(headers)
        self.assertIn('Missing key columns: "Parameter"', str(ctx.exception))

    def test_many_positional_differences_add_warning(self) -> None:
        headers = list(EXPECTED_HEADERS)
        for index in (1, 2, 3, 5, 6, 7, 8):
            headers[index] = f"custom {index}"
        result = validate_headers(headers)
        self.assertEqual(len(result.warnings), 1)
        self.assertTrue(result.warnings[0].startswith("7 column headers differ"))

    def test_few_positional_differences_are_silent(self) -> None:
        headers = list(EXPECTED_HEADERS)
        headers[1] = "address"
        headers[2] = "city"
        self.assertEqual(validate_headers(headers).warnings, [])


class TestDescriptorRows(unittest.TestCase):
    def test_descriptor_detection(self) -> None:
        self.assertTrue(is_type_descriptor_row(["TXT", "num", "", "Date"]))
        self.assertFalse(is_type_descriptor_row(["txt", "Iron"]))
        self.assertFalse(is_type_descriptor_row(["", "  "]))

    def test_only_leading_descriptor_rows_are_stripped(self) -> None:
        rows = [["TXT", "NUM"], ["txt", ""], ["a", "b"], ["txt", "num"]]
        data_rows, skipped = strip_type_descriptor_rows(rows)
        self.assertEqual(skipped, 2)
        self.assertEqual(data_rows, [("a", "b"), ("txt", "num")])

    def test_classify_rows_requires_a_data_row(self) -> None:
        with self.assertRaises(EDDFormatError) as ctx:
            classify_rows([list(EXPECTED_HEADERS)])
        self.assertIn("No data rows found", str(ctx.exception))

    def test_classify_rows_reports_descriptor_count(self) -> None:
        grid = [list(EXPECTED_HEADERS), ["txt"] * 26, ["x"] * 26]
        sheet = classify_rows(grid)
        self.assertEqual(sheet.descriptor_rows_skipped, 1)
        self.assertEqual(len(sheet.data_rows), 1)
        self.assertEqual(sheet.column_count, 26)


if __name__ == "__main__":
    unittest.main()
