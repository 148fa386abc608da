from __future__ import annotations

from dataclasses import dataclass

"""Section / block markers produced while walking a ledger sheet."""

__all__ = [
    "SectionMarker",
    "DoctorBlock",
]


@dataclass(frozen=True)
class SectionMarker:
    """A month header row ("Sep--2024") inside a sheet.

    month is 0-based (Jan=0 .. Dec=11), matching the header table.
    """
    start_row: int  # 1-based row of the header cell
    month: int  # 0..11
    year: int
    label: str = ""  # raw header text, for logging

    @property
    def calendar_month(self) -> int:
        """1-based month for datetime.date construction."""
        return self.month + 1


@dataclass(frozen=True)
class DoctorBlock:
    """Fixed-height window holding one doctor's figures for one section."""
    sheet_name: str
    start_row: int  # 1-based first row of the block (name row)
    section: SectionMarker
    doctor_name: str
