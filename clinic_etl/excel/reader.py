from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from .grid import CellGrid

"""Workbook reader.

The ledger has no header row, so every sheet is parsed with header=None and
wrapped in a CellGrid. A workbook that cannot be opened at all is a
FatalInputError and aborts the run.
"""

__all__ = [
    "FatalInputError",
    "EMPTY_CELL",
    "read_workbook",
]

EMPTY_CELL = ""


class FatalInputError(Exception):
    """Raised when the input workbook cannot be opened or parsed."""


def read_workbook(
    path: Path,
    target_sheets: Iterable[str] | None = None,
    na_strings: Iterable[str] | None = None,
) -> dict[str, CellGrid]:
    """Read a workbook returning one CellGrid per sheet, in workbook order.

    Only truly empty cells read as absent: pandas' default NA strings
    ("NA", "N/A", "null", "None", ...) stay text, since a label cell holding
    one of them is present and must not end the header scan.

    Parameters
    ----------
    path: workbook path
    target_sheets: restrict to these sheet names (None = all sheets)
    na_strings: extra strings to read as absent (config ``na_strings``)
    """
    if not path.exists():
        raise FatalInputError(f"workbook not found: {path}")
    if not path.is_file():
        raise FatalInputError(f"workbook path is not a file: {path}")

    na_values = [EMPTY_CELL, *(na_strings or [])]

    wanted = set(target_sheets) if target_sheets is not None else None
    grids: dict[str, CellGrid] = {}
    try:
        with pd.ExcelFile(path) as xls:
            for name in xls.sheet_names:
                if wanted is not None and str(name) not in wanted:
                    continue
                df = xls.parse(name, header=None, keep_default_na=False, na_values=na_values)
                grids[str(name)] = CellGrid(str(name), df)
    except Exception as e:
        raise FatalInputError(f"cannot read workbook {path.name}: {e}") from e
    return grids
