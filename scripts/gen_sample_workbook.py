#!/usr/bin/env python3
"""Generate a synthetic clinic ledger workbook.

The workbook follows the positional layout the importer expects:
- one sheet per clinic/year (e.g. "TK1-2024", "TK2-2024", "2025")
- a "<Mon>--<YYYY>" header row per month
- up to three 12-row doctor blocks per month

Useful for manual runs of ``python -m clinic_etl.cli --dry-run``.
"""
from __future__ import annotations

import argparse
import calendar
import sys
from pathlib import Path

import numpy as np

from clinic_etl.excel.sample import DayFigures, section_rows, write_ledger
from clinic_etl.models.layout import SheetLayout

DEFAULT_DOCTORS = ["Dr. Amal Perera", "Dr. Nimal Silva", "Dr. Kumari Fernando"]

# sheet name -> (year, months)
DEFAULT_SHEETS: dict[str, tuple[int, list[int]]] = {
    "TK1-2024": (2024, list(range(1, 11))),
    "TK2-2024": (2024, [9, 10, 11, 12]),
    "2025": (2025, [1, 2, 3]),
}


def generate_month(
    rng: np.random.Generator, year: int, month: int, activity: float
) -> dict[int, DayFigures]:
    """Random figures for the valid days of one month; idle days are left out."""
    days: dict[int, DayFigures] = {}
    for day in range(1, calendar.monthrange(year, month)[1] + 1):
        if rng.random() > activity:
            continue
        old_cnt = int(rng.integers(0, 15))
        new_cnt = int(rng.integers(0, 6))
        old_amt = float(old_cnt * int(rng.integers(8, 20)) * 100)
        new_amt = float(new_cnt * int(rng.integers(15, 30)) * 100)
        days[day] = (old_amt, new_amt, old_cnt, new_cnt)
    return days


def build_workbook(output: Path, doctors: list[str], activity: float, seed: int) -> Path:
    rng = np.random.default_rng(seed)
    layout = SheetLayout()
    sheets: dict[str, list[list[object]]] = {}
    for sheet_name, (year, months) in DEFAULT_SHEETS.items():
        rows: list[list[object]] = []
        for month in months:
            blocks = [(name, generate_month(rng, year, month, activity)) for name in doctors[: layout.max_blocks_per_section]]
            rows.extend(section_rows(month, year, blocks, layout))
        sheets[sheet_name] = rows
    return write_ledger(output, sheets)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Generate a synthetic clinic ledger workbook")
    p.add_argument("--output", "-o", type=Path, default=Path("data/clinic_ledger.xlsx"))
    p.add_argument("--doctor", action="append", dest="doctors", help="Doctor name (repeatable, max 3 used)")
    p.add_argument("--activity", type=float, default=0.7, help="Probability that a day has figures")
    p.add_argument("--seed", type=int, default=42)
    args = p.parse_args(argv)

    if not 0.0 <= args.activity <= 1.0:
        print("--activity must be between 0 and 1", file=sys.stderr)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    path = build_workbook(args.output, args.doctors or DEFAULT_DOCTORS, args.activity, args.seed)
    print(f"wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
