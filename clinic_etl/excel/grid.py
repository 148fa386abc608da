from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

"""Cell grid accessor.

Wraps one raw sheet (pandas DataFrame read with header=None) as a 1-based
(row, column) grid. Empty cells and out-of-range coordinates both read as
None ("absent"); nothing here raises on a short sheet.
"""

__all__ = [
    "CellGrid",
]


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class CellGrid:
    """Read-only 1-based view over a sheet's cells."""

    def __init__(self, name: str, frame: pd.DataFrame) -> None:
        self.name = name
        self._frame = frame
        self._values = frame.to_numpy(dtype=object) if not frame.empty else None

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[Sequence[Any]]) -> CellGrid:
        """Build a grid from nested lists (row 1 = rows[0])."""
        return cls(name, pd.DataFrame(list(rows)))

    @property
    def max_row(self) -> int:
        return 0 if self._values is None else self._values.shape[0]

    @property
    def max_column(self) -> int:
        return 0 if self._values is None else self._values.shape[1]

    def get(self, row: int, column: int) -> Any:
        """Value at (row, column), or None when the cell is empty or out of range."""
        if self._values is None:
            return None
        if row < 1 or column < 1 or row > self.max_row or column > self.max_column:
            return None
        value = self._values[row - 1, column - 1]
        if _is_absent(value):
            return None
        if isinstance(value, str):
            return value
        # numpy scalars -> python scalars
        return value.item() if hasattr(value, "item") else value

    def has(self, row: int, column: int) -> bool:
        return self.get(row, column) is not None

    def text(self, row: int, column: int) -> str | None:
        """String form of a present cell, stripped; None when absent."""
        value = self.get(row, column)
        if value is None:
            return None
        return str(value).strip()

    @staticmethod
    def cell_ref(row: int, column: int) -> str:
        """Conventional spreadsheet address, e.g. (5, 2) -> 'B5'."""
        return f"{get_column_letter(column)}{row}"

    def __repr__(self) -> str:  # pragma: no cover (debug only)
        return f"CellGrid(name={self.name!r}, rows={self.max_row}, columns={self.max_column})"
