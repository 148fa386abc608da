from __future__ import annotations

from dataclasses import dataclass, field

"""Spreadsheet layout table for the positional clinic ledger.

The ledger has no header row and no schema: every fact lives at a fixed
row/column offset. All of those offsets are collected here so that the
layout assumption is auditable in one place and can be overridden from
config/import.yml (``layout`` section).

Spreadsheet-specific assumptions (not universal truths):
- ``stop_at_blank_label``: a blank label cell (column A) marks the end of the
  sheet while scanning for month headers.
- ``max_blocks_per_section``: historical sheets hold at most 3 doctors per
  month section.
"""

__all__ = [
    "BlockOffsets",
    "SheetLayout",
]


@dataclass(frozen=True)
class BlockOffsets:
    """Sub-row offsets relative to the first row of a doctor block."""
    name: int = 0
    old_amount: int = 1
    new_amount: int = 3
    old_count: int = 5
    new_count: int = 7
    total_amount: int = 9
    total_count: int = 11


@dataclass(frozen=True)
class SheetLayout:
    """Fixed-offset description of one ledger sheet (1-based rows/columns)."""
    label_column: int = 1  # column A
    day_base_column: int = 2  # column B holds day 1
    days_in_month: int = 31  # day 31 -> column AF
    first_block_offset: int = 1  # first doctor block starts this many rows below the header
    block_height: int = 12
    max_blocks_per_section: int = 3
    stop_at_blank_label: bool = True
    min_year: int = 2000
    max_year: int = 2099
    check_totals: bool = True
    offsets: BlockOffsets = field(default_factory=BlockOffsets)

    def day_column(self, day: int) -> int:
        """Translate a 1-based day of month to its 1-based column index."""
        if day < 1 or day > self.days_in_month:
            raise ValueError(f"day out of range 1..{self.days_in_month}: {day}")
        return self.day_base_column + day - 1
