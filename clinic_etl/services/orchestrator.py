from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import partial
from pathlib import Path

from ..db.store import PersistenceSink, StoreError, write_with_retries
from ..excel.blocks import extract_doctor_blocks
from ..excel.grid import CellGrid
from ..excel.reader import read_workbook
from ..excel.sections import scan_section_headers
from ..logging.error_log import ErrorLogBuffer
from ..models import error_record as et
from ..models.config_models import ImportConfig
from ..models.error_record import ErrorRecord
from ..models.processing_result import ImportSummary, SheetResult
from ..models.section import DoctorBlock
from .daily_records import build_daily_records
from .identity import DoctorRegistry
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

"""Import orchestration.

Control flow per workbook, strictly in document order:
sheet -> month sections -> doctor blocks -> identity -> daily records ->
store. Problems are scoped as narrowly as possible: a bad header skips one
row, a nameless block skips one block, a failed write fails one record.
Only an unreadable workbook (FatalInputError) aborts the run.
"""

__all__ = [
    "ImportContext",
    "run_import",
    "describe_workbook",
]


class ImportContext:
    """Per-run collaborators shared by every sheet."""

    def __init__(
        self,
        config: ImportConfig,
        file_name: str,
        sink: PersistenceSink,
        registry: DoctorRegistry,
        error_log: ErrorLogBuffer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.file_name = file_name
        self.sink = sink
        self.registry = registry
        self.error_log = error_log
        self.sleep = sleep

    def report(self, sheet: str, row: int, error_type: str, message: str) -> None:
        self.error_log.append(ErrorRecord.create(self.file_name, sheet, row, error_type, message))


def run_import(
    config: ImportConfig,
    source: Path,
    sink: PersistenceSink,
    *,
    error_log: ErrorLogBuffer | None = None,
    registry: DoctorRegistry | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportSummary:
    """Import one ledger workbook into ``sink``.

    Args:
        config: import configuration (layout, identity, retry policy)
        source: workbook path
        sink: persistence sink receiving identities and daily records
        error_log: buffer for structured error records (flushed at the end)
        registry: identity registry; a fresh one scoped to this run by default
        sleep: backoff sleeper, injectable for tests

    Raises:
        FatalInputError: the workbook cannot be opened at all
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    if registry is None:
        registry = DoctorRegistry(
            sink,
            email_domain=config.identity.email_domain,
            default_clinic=config.identity.default_clinic,
            attempts=config.store.write_attempts,
            backoff_seconds=config.store.retry_backoff_seconds,
            sleep=sleep,
        )

    grids = read_workbook(source, target_sheets=config.target_sheets, na_strings=config.na_strings)
    logger.info("workbook %s: %d sheet(s) %s", source.name, len(grids), list(grids))

    ctx = ImportContext(config, source.name, sink, registry, error_log, sleep)
    sheet_results: list[SheetResult] = []
    records_so_far = 0

    with ProgressTracker(len(grids)) as progress:
        for sheet_name, grid in grids.items():
            progress.start_sheet(sheet_name)
            sheet_start = time.perf_counter()
            result = _process_sheet(grid, ctx)
            result.elapsed_seconds = time.perf_counter() - sheet_start
            sheet_results.append(result)

            records_so_far += result.records_written
            logger.info(
                "sheet=%s sections=%d blocks=%d records=%d failed=%d warnings=%d",
                sheet_name,
                result.sections_found,
                result.blocks_processed,
                result.records_written,
                result.records_failed,
                result.warnings,
            )
            progress.set_postfix(records=records_so_far)
            progress.finish_sheet()

    # Flush error log once at the end of the run
    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info("error log written: %s", log_path)
    except OSError as e:
        logger.warning("failed to write error log: %s", e)

    logger.debug("doctors created=%d reused=%d", registry.created, registry.reused)
    return ImportSummary.from_sheets(source.name, sheet_results, start_time, datetime.now(UTC))


def _process_sheet(grid: CellGrid, ctx: ImportContext) -> SheetResult:
    layout = ctx.config.layout
    result = SheetResult(sheet_name=grid.name)

    scan = scan_section_headers(grid, layout)
    result.sections_found = len(scan.markers)
    for rejected in scan.rejected:
        result.parse_errors += 1
        ctx.report(
            grid.name,
            rejected.row,
            et.STRUCTURAL_PARSE_ERROR,
            f"{rejected.text!r}: {rejected.reason}",
        )

    if not scan.markers:
        logger.warning("sheet=%s has no month sections", grid.name)
        return result

    for index, section in enumerate(scan.markers):
        next_section = scan.markers[index + 1] if index + 1 < len(scan.markers) else None
        logger.debug("sheet=%s section=%s row=%d", grid.name, section.label, section.start_row)

        blocks = extract_doctor_blocks(grid, section, next_section, layout)
        for row in blocks.missing_name_rows:
            result.warnings += 1
            ctx.report(grid.name, row, et.MISSING_DOCTOR_NAME, f"no doctor name in {section.label} block")

        for block in blocks.blocks:
            _process_block(grid, block, ctx, result)

    return result


def _process_block(grid: CellGrid, block: DoctorBlock, ctx: ImportContext, result: SheetResult) -> None:
    layout = ctx.config.layout
    try:
        identity = ctx.registry.resolve_or_create(block.doctor_name)
    except (StoreError, ValueError) as e:
        # the block's days cannot be attributed; each one counts as a failed record
        lost = build_daily_records(grid, block, ctx.registry.provisional_identity(block.doctor_name), layout).records
        result.warnings += 1
        result.records_failed += len(lost)
        logger.error(
            "sheet=%s row=%d cannot resolve doctor %r (%d record(s) not written): %s",
            grid.name, block.start_row, block.doctor_name, len(lost), e,
        )
        ctx.report(
            grid.name,
            block.start_row,
            et.IDENTITY_ERROR,
            f"{block.doctor_name}: {e} ({len(lost)} record(s) not written)",
        )
        return

    built = build_daily_records(grid, block, identity, layout)
    result.blocks_processed += 1

    for invalid in built.invalid_days:
        result.warnings += 1
        logger.warning(
            "sheet=%s %s day %d skipped: %s",
            grid.name, CellGrid.cell_ref(block.start_row, invalid.column), invalid.day, invalid.reason,
        )
        ctx.report(grid.name, block.start_row, et.INVALID_DAY, f"{block.doctor_name} day {invalid.day}: {invalid.reason}")

    for mismatch in built.totals_mismatches:
        result.warnings += 1
        ctx.report(
            grid.name,
            block.start_row,
            et.TOTALS_MISMATCH,
            f"{block.doctor_name} day {mismatch.day} total {mismatch.field}: "
            f"sheet={mismatch.in_sheet} computed={mismatch.computed}",
        )

    if not built.records:
        if not built.invalid_days:
            result.warnings += 1
            logger.debug("sheet=%s row=%d %s has no activity in %s", grid.name, block.start_row, block.doctor_name, block.section.label)
            ctx.report(grid.name, block.start_row, et.EMPTY_BLOCK, f"{block.doctor_name}: no activity in {block.section.label}")
        return

    store_cfg = ctx.config.store
    for record in built.records:
        try:
            write_with_retries(
                partial(ctx.sink.write_daily_record, record),
                attempts=store_cfg.write_attempts,
                backoff_seconds=store_cfg.retry_backoff_seconds,
                sleep=ctx.sleep,
            )
        except StoreError as e:
            result.records_failed += 1
            logger.error("failed to write %s %s: %s", record.doctor_key, record.record_date.isoformat(), e)
            ctx.report(
                grid.name,
                block.start_row,
                et.STORE_ERROR,
                f"{record.doctor_key} {record.record_date.isoformat()}: {e}",
            )
            continue
        result.records_written += 1


def describe_workbook(config: ImportConfig, source: Path) -> list[str]:
    """Human readable outline of sections and doctor blocks, without writing anything."""
    lines: list[str] = []
    layout = config.layout
    grids = read_workbook(source, target_sheets=config.target_sheets, na_strings=config.na_strings)
    for sheet_name, grid in grids.items():
        scan = scan_section_headers(grid, layout)
        lines.append(f"SHEET: {sheet_name} rows={grid.max_row} sections={len(scan.markers)}")
        for rejected in scan.rejected:
            lines.append(f"  REJECTED row={rejected.row} {rejected.text!r}: {rejected.reason}")
        for index, section in enumerate(scan.markers):
            next_section = scan.markers[index + 1] if index + 1 < len(scan.markers) else None
            blocks = extract_doctor_blocks(grid, section, next_section, layout)
            doctors = [b.doctor_name for b in blocks.blocks]
            lines.append(f"  {section.label} row={section.start_row} doctors={doctors}")
    return lines
