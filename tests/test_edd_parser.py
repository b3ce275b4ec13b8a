"""
tests/test_edd_parser.py

End-to-end EDDParser behavior over in-memory grids with a fake reference lookup.

Coverage
--------
- Row accounting (parsed + skipped = total) and row numbering
- Parameter and outfall resolution, learned outfall aliases
- Duplicate detection against existing results
- Hold-time violations and validation issues
- Resource limits
- CSV bytes through parse_file
"""

from __future__ import annotations

from typing import Callable, Sequence

import pytest

from edd.errors import EDDFormatError, EDDResourceLimitError
from edd.parser import EDDParser, ParseLimits, sample_date_window
from edd.resolver import KnownOutfall, OutfallAliasEntry, ParameterAliasEntry

PERMIT_NUMBER = "WV1234567"
PERMIT_ID = "permit-1"
ORG_ID = "11111111-1111-1111-1111-111111111111"

RowFactory = Callable[..., list[str]]


class FakeReferenceLookup:
    def __init__(
        self,
        *,
        parameter_aliases: dict[str, ParameterAliasEntry] | None = None,
        permit_ids: dict[str, str] | None = None,
        outfalls: list[KnownOutfall] | None = None,
        outfall_aliases: dict[tuple[str, str], OutfallAliasEntry] | None = None,
        existing_keys: set[str] | None = None,
    ) -> None:
        self.parameter_aliases = parameter_aliases or {}
        self.permit_ids = permit_ids or {}
        self.outfalls = outfalls or []
        self.outfall_aliases = outfall_aliases or {}
        self.existing_keys = existing_keys or set()
        self.windows: list[tuple[tuple[str, ...], str, str]] = []
        self.alias_loads = 0

    def load_parameter_aliases(self) -> dict[str, ParameterAliasEntry]:
        return dict(self.parameter_aliases)

    def load_permit_ids(self, permit_numbers: Sequence[str]) -> dict[str, str]:
        return {number: self.permit_ids[number] for number in permit_numbers if number in self.permit_ids}

    def load_outfalls(self, permit_ids: Sequence[str]) -> list[KnownOutfall]:
        return [outfall for outfall in self.outfalls if outfall.permit_id in permit_ids]

    def load_outfall_aliases(
        self,
        organization_id: str,
        permit_ids: Sequence[str],
    ) -> dict[tuple[str, str], OutfallAliasEntry]:
        self.alias_loads += 1
        return dict(self.outfall_aliases)

    def load_existing_result_keys(self, permit_numbers: Sequence[str], earliest: str, latest: str) -> set[str]:
        self.windows.append((tuple(permit_numbers), earliest, latest))
        return set(self.existing_keys)


def _lookup_with_outfalls(**kwargs) -> FakeReferenceLookup:
    return FakeReferenceLookup(
        permit_ids={PERMIT_NUMBER: PERMIT_ID},
        outfalls=[
            KnownOutfall(id="outfall-1", outfall_id="001", permit_id=PERMIT_ID),
            KnownOutfall(id="outfall-2", outfall_id="002", permit_id=PERMIT_ID),
        ],
        **kwargs,
    )


def _parse(lookup: FakeReferenceLookup, grid: list[list[str]], **kwargs):
    parser = EDDParser(reference_lookup=lookup, limits=kwargs.pop("limits", None))
    return parser.parse_grid(grid, file_format="xlsx", **kwargs)


class TestRowAccounting:
    def test_parsed_plus_skipped_equals_total(self, edd_header: list[str], edd_row: RowFactory) -> None:
        grid = [
            edd_header,
            edd_row(),
            [""] * 26,
            edd_row(parameter="TXT"),
            edd_row(parameter="TSS", value="12"),
            edd_row(parameter=""),
        ]

        extraction = _parse(FakeReferenceLookup(), grid).extraction

        assert extraction.total_rows == 5
        assert extraction.parsed_rows == 2
        assert extraction.skipped_rows == 3
        assert extraction.parsed_rows + extraction.skipped_rows == extraction.total_rows
        assert [error.message for error in extraction.validation_errors] == ["Missing parameter"]

    def test_row_numbers_follow_sheet_rows(self, edd_header: list[str], edd_row: RowFactory) -> None:
        grid = [edd_header, ["TXT", "NUM", "DATE"] + [""] * 23, edd_row(), edd_row(parameter="pH")]

        records = _parse(FakeReferenceLookup(), grid).extraction.records

        assert [record.row_number for record in records] == [3, 4]

    def test_row_limit(self, edd_header: list[str], edd_row: RowFactory) -> None:
        grid = [edd_header, edd_row(), edd_row(), edd_row()]
        with pytest.raises(EDDResourceLimitError, match="exceeds the 2 row limit"):
            _parse(FakeReferenceLookup(), grid, limits=ParseLimits(max_rows=2))

    def test_header_only_grid(self, edd_header: list[str]) -> None:
        with pytest.raises(EDDFormatError, match="No data rows found"):
            _parse(FakeReferenceLookup(), [edd_header])


class TestResolution:
    def test_parameter_alias_and_value_parsing(self, edd_header: list[str], edd_row: RowFactory) -> None:
        lookup = FakeReferenceLookup(
            parameter_aliases={"iron, total": ParameterAliasEntry(parameter_id="param-fe", canonical_name="Iron")}
        )
        grid = [edd_header, edd_row(value="<0.5")]

        extraction = _parse(lookup, grid).extraction
        record = extraction.records[0]

        assert record.parameter_canonical == "Iron"
        assert record.parameter_id == "param-fe"
        assert record.value == 0.5
        assert record.below_detection is True
        assert record.data_qualifier == "<"
        assert extraction.parameters_resolved == 1
        assert extraction.parameter_summary[0].below_detection_count == 1

    def test_outfall_variants_resolve_and_learn_once(self, edd_header: list[str], edd_row: RowFactory) -> None:
        lookup = _lookup_with_outfalls()
        grid = [
            edd_header,
            edd_row(outfall="1"),
            edd_row(outfall="1", parameter="TSS"),
            edd_row(outfall="1.0", parameter="pH"),
            edd_row(outfall="001", parameter="Manganese"),
        ]

        outcome = _parse(lookup, grid, organization_id=ORG_ID)
        records = outcome.extraction.records

        assert {record.outfall_matched for record in records} == {"001"}
        assert {record.outfall_db_id for record in records} == {"outfall-1"}
        assert outcome.extraction.outfalls_resolved == 4
        assert [(alias.alias, alias.match_method) for alias in outcome.pending_outfall_aliases] == [
            ("1", "zero_strip"),
            ("1.0", "zero_strip"),
            ("001", "exact"),
        ]
        assert outcome.extraction.outfall_aliases_created == 3
        assert lookup.alias_loads == 1

    def test_no_aliases_returned_without_organization(self, edd_header: list[str], edd_row: RowFactory) -> None:
        outcome = _parse(_lookup_with_outfalls(), [edd_header, edd_row(outfall="1")])

        assert outcome.extraction.records[0].outfall_matched == "001"
        assert outcome.pending_outfall_aliases == []
        assert outcome.extraction.outfall_aliases_created == 0

    def test_missing_permits_skip_outfall_matching(self, edd_header: list[str], edd_row: RowFactory) -> None:
        extraction = _parse(FakeReferenceLookup(), [edd_header, edd_row()]).extraction

        assert extraction.records[0].outfall_db_id is None
        assert extraction.outfalls_resolved == 0
        assert any(warning.startswith("No permits found in database") for warning in extraction.warnings)

    def test_unmatched_outfall_warning(self, edd_header: list[str], edd_row: RowFactory) -> None:
        extraction = _parse(_lookup_with_outfalls(), [edd_header, edd_row(outfall="077")]).extraction

        assert "1 outfall(s) could not be matched to existing permit outfalls: 077" in extraction.warnings


class TestComplianceChecks:
    def test_duplicates_flagged_using_canonical_outfall(self, edd_header: list[str], edd_row: RowFactory) -> None:
        lookup = _lookup_with_outfalls(existing_keys={"wv1234567|001|2024-01-15|09:30|iron"})
        grid = [edd_header, edd_row(outfall="1"), edd_row(parameter="pH")]

        extraction = _parse(lookup, grid).extraction

        assert [record.is_duplicate for record in extraction.records] == [True, False]
        assert extraction.duplicate_rows == 1
        assert lookup.windows == [((PERMIT_NUMBER,), "2024-01-15", "2024-01-15")]

    def test_duplicate_lookup_skipped_without_dates(self, edd_header: list[str], edd_row: RowFactory) -> None:
        lookup = FakeReferenceLookup()
        _parse(lookup, [edd_header, edd_row(sample_date="")])

        assert lookup.windows == []

    def test_hold_time_violation(self, edd_header: list[str], edd_row: RowFactory) -> None:
        grid = [edd_header, edd_row(parameter="TSS", analysis_date="01/25/2024")]

        extraction = _parse(FakeReferenceLookup(), grid).extraction

        violation = extraction.hold_time_violations[0]
        assert violation.parameter == "Total Suspended Solids"
        assert violation.days_held == 10.0
        assert violation.max_hold_days == 7
        assert extraction.records[0].hold_time_compliant is False
        assert "1 potential hold time violation(s) detected." in extraction.warnings

    def test_invalid_dates_are_validation_issues(self, edd_header: list[str], edd_row: RowFactory) -> None:
        grid = [edd_header, edd_row(sample_date="13/45/2023", analysis_date="soon", permit_number="")]

        extraction = _parse(FakeReferenceLookup(), grid).extraction

        columns = [error.column for error in extraction.validation_errors]
        assert columns == ["Permit#", "Sample Date FLD", "Date Analyzed"]
        assert extraction.records[0].sample_date is None
        assert extraction.parsed_rows == 1

    def test_out_of_range_time_is_dropped_with_validation_issue(
        self, edd_header: list[str], edd_row: RowFactory
    ) -> None:
        grid = [edd_header, edd_row(sample_time="2400"), edd_row(sample_time="0000")]

        extraction = _parse(FakeReferenceLookup(), grid).extraction

        assert [record.sample_time for record in extraction.records] == [None, "00:00"]
        assert [(error.row_number, error.column) for error in extraction.validation_errors] == [
            (2, "Sample Time FLD")
        ]
        assert extraction.validation_errors[0].value == "2400"


def test_sample_date_window(edd_row: RowFactory) -> None:
    rows = [edd_row(sample_date="02/01/2024"), edd_row(sample_date="44927"), edd_row(sample_date="")]
    assert sample_date_window(rows) == ("2023-01-01", "2024-02-01")
    assert sample_date_window([edd_row(sample_date="")]) is None


def test_parse_file_reads_csv_bytes(edd_header: list[str], edd_row: RowFactory) -> None:
    lines = [
        ",".join(edd_header),
        ",".join(edd_row(parameter="Iron")),
        ",".join(edd_row(parameter="TSS", value="12")),
    ]
    content = ("\n".join(lines) + "\n").encode("utf-8")
    parser = EDDParser(reference_lookup=FakeReferenceLookup())

    outcome = parser.parse_file(content, file_name="results.csv", import_id="import-1")

    assert outcome.extraction.file_format == "csv"
    assert outcome.extraction.parsed_rows == 2
    assert outcome.extraction.import_id == "import-1"
    assert outcome.extraction.states == ["WV"]


def test_parse_file_rejects_oversized_content() -> None:
    parser = EDDParser(reference_lookup=FakeReferenceLookup(), limits=ParseLimits(max_file_size_bytes=10))
    with pytest.raises(EDDResourceLimitError, match="File is too large"):
        parser.parse_file(b"x" * 11, file_name="results.csv")
