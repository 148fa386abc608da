from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ..models.layout import SheetLayout
from ..models.section import SectionMarker
from .grid import CellGrid

"""Month-year header scanner.

Walks the label column top to bottom and turns every ``"<Mon>--<YYYY>"``
cell into a SectionMarker. A cell that merely *looks* like a header
(letters, dashes, a 4-digit year in the supported range) but does not parse
strictly is rejected with StructuralParseError; the row is reported and
skipped and the scan continues.
"""

__all__ = [
    "HEADER_DELIMITER",
    "MONTH_ABBREVIATIONS",
    "StructuralParseError",
    "RejectedHeader",
    "SectionScan",
    "parse_month_year",
    "looks_like_section_header",
    "scan_section_headers",
]

logger = logging.getLogger(__name__)

HEADER_DELIMITER = "--"

MONTH_ABBREVIATIONS: dict[str, int] = {
    "Jan": 0, "Feb": 1, "Mar": 2, "Apr": 3, "May": 4, "Jun": 5,
    "Jul": 6, "Aug": 7, "Sep": 8, "Oct": 9, "Nov": 10, "Dec": 11,
}

# Loose shape of a header cell: word, one or more dashes, 4-digit year
_HEADER_SHAPE = re.compile(r"^\s*[A-Za-z]+\.?\s*-+\s*(\d{4})\s*$")


class StructuralParseError(ValueError):
    """A header-like cell that is not a valid "Mon--YYYY" token."""

    def __init__(self, text: str, reason: str, row: int | None = None) -> None:
        self.text = text
        self.reason = reason
        self.row = row
        where = f" at row {row}" if row is not None else ""
        super().__init__(f"invalid month-year header{where}: {text!r} ({reason})")


@dataclass(frozen=True)
class RejectedHeader:
    row: int
    text: str
    reason: str


@dataclass
class SectionScan:
    """Result of scanning one sheet: valid markers plus rejected header rows."""
    markers: list[SectionMarker] = field(default_factory=list)
    rejected: list[RejectedHeader] = field(default_factory=list)
    last_row: int = 0  # last label row examined


def parse_month_year(text: str) -> tuple[int, int]:
    """Parse "Sep--2024" into (month 0..11, year).

    Raises:
        StructuralParseError: wrong token count, unknown month abbreviation or
            non-numeric year.
    """
    parts = text.strip().split(HEADER_DELIMITER)
    if len(parts) != 2:
        raise StructuralParseError(text, f"expected '<Mon>{HEADER_DELIMITER}<YYYY>'")
    month_token, year_token = parts[0].strip(), parts[1].strip()
    month = MONTH_ABBREVIATIONS.get(month_token)
    if month is None:
        raise StructuralParseError(text, f"unknown month abbreviation {month_token!r}")
    if not (year_token.isdigit() and len(year_token) == 4):
        raise StructuralParseError(text, f"year is not a 4-digit number: {year_token!r}")
    return month, int(year_token)


def looks_like_section_header(value: Any, layout: SheetLayout) -> bool:
    """True when a label cell has the shape of a month header in the supported year range."""
    if value is None:
        return False
    m = _HEADER_SHAPE.match(str(value))
    if m is None:
        return False
    year = int(m.group(1))
    return layout.min_year <= year <= layout.max_year


def scan_section_headers(grid: CellGrid, layout: SheetLayout) -> SectionScan:
    """Collect section markers for one sheet in row order.

    With ``layout.stop_at_blank_label`` (the historical convention) the first
    empty label cell ends the scan; otherwise the whole grid is walked.
    """
    scan = SectionScan()
    col = layout.label_column
    for row in range(1, grid.max_row + 1):
        value = grid.get(row, col)
        if value is None:
            if layout.stop_at_blank_label:
                break
            continue
        scan.last_row = row
        if not looks_like_section_header(value, layout):
            continue
        text = str(value).strip()
        try:
            month, year = parse_month_year(text)
        except StructuralParseError as e:
            logger.warning("sheet=%s row=%d rejected header: %s", grid.name, row, e.reason)
            scan.rejected.append(RejectedHeader(row=row, text=text, reason=e.reason))
            continue
        scan.markers.append(SectionMarker(start_row=row, month=month, year=year, label=text))

    logger.debug(
        "sheet=%s sections=%d rejected=%d last_label_row=%d",
        grid.name, len(scan.markers), len(scan.rejected), scan.last_row,
    )
    return scan
