"""
tests/conftest.py

Shared factories for EDD rows and parsed records.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import pytest

from app.domain.lab_data import ParsedRecord
from edd.headers import EDDColumn, EXPECTED_HEADERS

_DEFAULT_ROW: dict[int, str] = {
    EDDColumn.PERMITTEE_NAME: "Acme Coal LLC",
    EDDColumn.PERMIT_NUMBER: "WV1234567",
    EDDColumn.SITE_NAME: "Mine 7",
    EDDColumn.SITE_STATE: "WV",
    EDDColumn.SITE_COUNTY: "Boone",
    EDDColumn.LAB_NAME: "Appalachian Labs",
    EDDColumn.SAMPLER: "J. Doe",
    EDDColumn.OUTFALL: "001",
    EDDColumn.LATITUDE: "38.1",
    EDDColumn.LONGITUDE: "-81.5",
    EDDColumn.STREAM_NAME: "Coal River",
    EDDColumn.SAMPLE_DATE: "01/15/2024",
    EDDColumn.SAMPLE_TIME: "09:30",
    EDDColumn.ANALYSIS_DATE: "01/16/2024",
    EDDColumn.PARAMETER: "Iron, Total",
    EDDColumn.VALUE: "1.5",
    EDDColumn.UNITS: "mg/L",
}

_COLUMN_NAMES = {
    "permittee_name": EDDColumn.PERMITTEE_NAME,
    "permit_number": EDDColumn.PERMIT_NUMBER,
    "site_name": EDDColumn.SITE_NAME,
    "site_state": EDDColumn.SITE_STATE,
    "lab_name": EDDColumn.LAB_NAME,
    "outfall": EDDColumn.OUTFALL,
    "sample_date": EDDColumn.SAMPLE_DATE,
    "sample_time": EDDColumn.SAMPLE_TIME,
    "analysis_date": EDDColumn.ANALYSIS_DATE,
    "parameter": EDDColumn.PARAMETER,
    "value": EDDColumn.VALUE,
    "units": EDDColumn.UNITS,
    "qualifier": EDDColumn.QUALIFIER,
}


def build_edd_row(**overrides: str) -> list[str]:
    row = [""] * len(EXPECTED_HEADERS)
    for index, value in _DEFAULT_ROW.items():
        row[index] = value
    for name, value in overrides.items():
        row[_COLUMN_NAMES[name]] = value
    return row


_BASE_RECORD = ParsedRecord(
    row_number=2,
    permittee_name="Acme Coal LLC",
    permit_number="WV1234567",
    site_name="Mine 7",
    site_state="WV",
    site_county="Boone",
    lab_name="Appalachian Labs",
    sampler="J. Doe",
    outfall_raw="001",
    outfall_matched="001",
    outfall_db_id="00000000-0000-0000-0000-000000000001",
    outfall_match_method="exact",
    latitude=38.1,
    longitude=-81.5,
    stream_name="Coal River",
    sample_date="2024-01-15",
    sample_time="09:30",
    analysis_date="2024-01-16",
    parameter_raw="Iron, Total",
    parameter_canonical="Iron",
    parameter_id="00000000-0000-0000-0000-0000000000a1",
    value=1.5,
    value_raw="1.5",
    unit="mg/L",
    below_detection=False,
    data_qualifier=None,
    comments=None,
    hold_time_days=1.0,
    hold_time_compliant=True,
)


def build_record(**overrides: Any) -> ParsedRecord:
    return replace(_BASE_RECORD, **overrides)


@pytest.fixture()
def edd_header() -> list[str]:
    return [header.title() for header in EXPECTED_HEADERS]


@pytest.fixture()
def edd_row() -> Callable[..., list[str]]:
    return build_edd_row


@pytest.fixture()
def make_record() -> Callable[..., ParsedRecord]:
    return build_record
