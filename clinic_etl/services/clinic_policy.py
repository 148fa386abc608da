from __future__ import annotations

from datetime import date

"""Clinic resolution policy.

The practice moved from TK1 to TK2 in autumn 2024. Records up to August
2024 belong to TK1, records from November 2024 on belong to TK2. For
September and October 2024 both locations were active, so the sheet name
decides. Nothing else in the package knows about clinic history.
"""

__all__ = [
    "TK1",
    "TK2",
    "RELOCATION_YEAR",
    "TRANSITION_MONTHS",
    "resolve_clinic",
]

TK1 = "TK1"
TK2 = "TK2"

RELOCATION_YEAR = 2024
TRANSITION_MONTHS = (9, 10)  # Sep, Oct


def resolve_clinic(record_date: date, sheet_name: str | None) -> str:
    """Map a record's date (and, in the transition window, its sheet name) to a clinic."""
    year, month = record_date.year, record_date.month

    if year < RELOCATION_YEAR or (year == RELOCATION_YEAR and month < TRANSITION_MONTHS[0]):
        return TK1
    if year == RELOCATION_YEAR and month in TRANSITION_MONTHS:
        if sheet_name and TK1 in sheet_name:
            return TK1
        if sheet_name and TK2 in sheet_name:
            return TK2
        return TK1
    if year == RELOCATION_YEAR and month > TRANSITION_MONTHS[-1]:
        return TK2
    if year > RELOCATION_YEAR:
        return TK2
    return TK1  # pragma: no cover (unreachable for valid dates)
