from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

"""Processing result models for the clinic ledger import.

SheetResult collects per-sheet counters while a sheet is walked;
ImportSummary is the immutable aggregate rendered as the SUMMARY line.
"""

__all__ = [
    "SheetResult",
    "ImportSummary",
]


@dataclass
class SheetResult:
    """Mutable per-sheet counters, filled in by the orchestrator."""
    sheet_name: str
    sections_found: int = 0
    blocks_processed: int = 0
    records_written: int = 0
    records_failed: int = 0
    warnings: int = 0
    parse_errors: int = 0
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ImportSummary:
    """Aggregated results of one import run.

    A run with partial failures is still a success as long as at least one
    record was written.
    """
    source_file: str
    sheets_processed: int
    sections_found: int
    blocks_processed: int
    records_written: int
    records_failed: int
    warnings: int
    parse_errors: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_records_per_sec: float
    sheet_results: list[SheetResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.records_written > 0

    @classmethod
    def from_sheets(
        cls,
        source_file: str,
        sheet_results: list[SheetResult],
        start_time: datetime,
        end_time: datetime,
    ) -> ImportSummary:
        elapsed = (end_time - start_time).total_seconds()
        written = sum(s.records_written for s in sheet_results)
        # avoid division by zero on instant runs
        throughput = written / elapsed if elapsed > 0 else 0.0
        return cls(
            source_file=source_file,
            sheets_processed=len(sheet_results),
            sections_found=sum(s.sections_found for s in sheet_results),
            blocks_processed=sum(s.blocks_processed for s in sheet_results),
            records_written=written,
            records_failed=sum(s.records_failed for s in sheet_results),
            warnings=sum(s.warnings for s in sheet_results),
            parse_errors=sum(s.parse_errors for s in sheet_results),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=elapsed,
            throughput_records_per_sec=throughput,
            sheet_results=list(sheet_results),
        )
