"""
edd/compliance.py

Hold-time compliance and duplicate detection against imported history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from edd.fields import days_between
from edd.parameters import DEFAULT_HOLD_TIME_DAYS, HOLD_TIME_DAYS

HOLD_TIMES = HOLD_TIME_DAYS


@dataclass(frozen=True)
class HoldTimeResult:
    days: float | None
    compliant: bool | None


def max_hold_days(parameter: str) -> int:
    return HOLD_TIMES.get(parameter, DEFAULT_HOLD_TIME_DAYS)


def check_hold_time(sample_date: str | None, analysis_date: str | None, parameter: str) -> HoldTimeResult:
    """
    Compare elapsed sample-to-analysis days with the parameter's hold time.

    ``compliant`` is None when either date is missing or the parameter has no
    defined hold time; elapsed days are still reported in the latter case.
    """

    if not sample_date or not analysis_date:
        return HoldTimeResult(days=None, compliant=None)

    elapsed = days_between(sample_date, analysis_date)
    if elapsed is None:
        return HoldTimeResult(days=None, compliant=None)

    limit = HOLD_TIMES.get(parameter)
    if limit is None:
        return HoldTimeResult(days=elapsed, compliant=None)
    return HoldTimeResult(days=elapsed, compliant=elapsed <= limit)


def duplicate_key(
    permit_number: str,
    outfall: str,
    sample_date: str | None,
    sample_time: str | None,
    parameter: str,
) -> str:
    return f"{permit_number}|{outfall}|{sample_date or ''}|{sample_time or ''}|{parameter}".lower()


class DuplicateIndex:
    """
    Set of composite keys for lab results that already exist in storage.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys = {key.lower() for key in keys}

    def __len__(self) -> int:
        return len(self._keys)

    def add(
        self,
        permit_number: str,
        outfall: str,
        sample_date: str | None,
        sample_time: str | None,
        parameter: str,
    ) -> None:
        self._keys.add(duplicate_key(permit_number, outfall, sample_date, sample_time, parameter))

    def contains(
        self,
        permit_number: str,
        outfall: str,
        sample_date: str | None,
        sample_time: str | None,
        parameter: str,
    ) -> bool:
        return duplicate_key(permit_number, outfall, sample_date, sample_time, parameter) in self._keys
