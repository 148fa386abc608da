from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models.layout import SheetLayout
from ..models.section import DoctorBlock, SectionMarker
from .grid import CellGrid
from .sections import looks_like_section_header

"""Doctor block extractor.

Inside a month section, doctor blocks follow each other every
``layout.block_height`` rows, starting ``layout.first_block_offset`` rows
below the header. The walk stops at the next header-shaped label, at the
next section marker, at the end of the grid, or after
``layout.max_blocks_per_section`` blocks (a layout assumption of the
historical sheets). A block without a doctor name is a gap: it is reported
but the cursor still moves on by one block height.
"""

__all__ = [
    "BlockScan",
    "extract_doctor_blocks",
]

logger = logging.getLogger(__name__)


@dataclass
class BlockScan:
    blocks: list[DoctorBlock] = field(default_factory=list)
    missing_name_rows: list[int] = field(default_factory=list)  # block start rows without a name


def extract_doctor_blocks(
    grid: CellGrid,
    section: SectionMarker,
    next_section: SectionMarker | None,
    layout: SheetLayout,
) -> BlockScan:
    """Return the doctor blocks of one section in document order."""
    scan = BlockScan()
    col = layout.label_column
    limit_row = next_section.start_row if next_section is not None else grid.max_row + 1
    cursor = section.start_row + layout.first_block_offset

    for _ in range(layout.max_blocks_per_section):
        if cursor >= limit_row or cursor > grid.max_row:
            break
        if looks_like_section_header(grid.get(cursor, col), layout):
            # start of another (possibly malformed) section
            break
        name = grid.text(cursor + layout.offsets.name, col)
        if not name:
            logger.debug("sheet=%s row=%d block without doctor name, skipped", grid.name, cursor)
            scan.missing_name_rows.append(cursor)
        else:
            scan.blocks.append(
                DoctorBlock(
                    sheet_name=grid.name,
                    start_row=cursor,
                    section=section,
                    doctor_name=name,
                )
            )
        cursor += layout.block_height

    return scan
