from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.layout import SheetLayout
from .sections import MONTH_ABBREVIATIONS

"""Ledger writer for synthetic workbooks.

Produces sheets in the positional layout the importer reads: a
``"<Mon>--<YYYY>"`` header row carrying the day numbers, followed by one
fixed-height block per doctor. Every row of a block carries a label in
column A, as the historical sheets do. Used by scripts/gen_sample_workbook.py
and the test-suite.
"""

__all__ = [
    "DayFigures",
    "month_label",
    "block_rows",
    "section_rows",
    "write_ledger",
]

# (old amount, new amount, old patient count, new patient count)
DayFigures = tuple[float, float, int, int]

_FILLER_LABELS = ("Cum Amt Old", "Cum Amt New", "Cum Pt Old", "Cum Pt New", "Cum Amt Total")

_MONTH_NAMES = {v: k for k, v in MONTH_ABBREVIATIONS.items()}


def month_label(month: int, year: int) -> str:
    """month is 1-based here: (9, 2024) -> 'Sep--2024'."""
    return f"{_MONTH_NAMES[month - 1]}--{year}"


def _width(layout: SheetLayout) -> int:
    return max(layout.label_column, layout.day_column(layout.days_in_month))


def block_rows(
    name: str | None,
    days: Mapping[int, DayFigures],
    layout: SheetLayout | None = None,
    with_totals: bool = True,
) -> list[list[Any]]:
    """Rows for one doctor block; ``name=None`` leaves the name cell empty."""
    layout = layout or SheetLayout()
    off = layout.offsets
    width = _width(layout)
    rows: list[list[Any]] = [[None] * width for _ in range(layout.block_height)]

    labels = {
        off.old_amount: "Amt Old",
        off.new_amount: "Amt New",
        off.old_count: "Pt Old",
        off.new_count: "Pt New",
        off.total_amount: "Amt Total",
        off.total_count: "Pt Total",
    }
    fillers = iter(_FILLER_LABELS)
    for i, row in enumerate(rows):
        if i == off.name:
            row[layout.label_column - 1] = name
        elif i in labels:
            row[layout.label_column - 1] = labels[i]
        else:
            row[layout.label_column - 1] = next(fillers, "Memo")

    for day, (old_amt, new_amt, old_cnt, new_cnt) in days.items():
        c = layout.day_column(day) - 1
        rows[off.old_amount][c] = old_amt
        rows[off.new_amount][c] = new_amt
        rows[off.old_count][c] = old_cnt
        rows[off.new_count][c] = new_cnt
        if with_totals:
            rows[off.total_amount][c] = old_amt + new_amt
            rows[off.total_count][c] = old_cnt + new_cnt
    return rows


def section_rows(
    month: int,
    year: int,
    doctors: Sequence[tuple[str | None, Mapping[int, DayFigures]]],
    layout: SheetLayout | None = None,
    header: str | None = None,
) -> list[list[Any]]:
    """Header row (with day numbers) followed by one block per doctor."""
    layout = layout or SheetLayout()
    width = _width(layout)
    head: list[Any] = [None] * width
    head[layout.label_column - 1] = header or month_label(month, year)
    for day in range(1, layout.days_in_month + 1):
        head[layout.day_column(day) - 1] = day
    rows = [head]
    # rows between the header and the first block
    for _ in range(layout.first_block_offset - 1):
        spacer: list[Any] = [None] * width
        spacer[layout.label_column - 1] = "Date"
        rows.append(spacer)
    for name, days in doctors:
        rows.extend(block_rows(name, days, layout))
    return rows


def write_ledger(path: Path, sheets: Mapping[str, Sequence[Sequence[Any]]]) -> Path:
    """Write raw rows (no header, no index) to an .xlsx workbook."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(list(rows)).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path
