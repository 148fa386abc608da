from __future__ import annotations

from ..models.processing_result import ImportSummary

"""SUMMARY line rendering.

Format:
SUMMARY sheets={n} sections={n} blocks={n} records={n} failed={n}
warnings={n} parse_errors={n} elapsed_sec={x} throughput_rps={y}
"""

__all__ = [
    "format_number",
    "render_summary_line",
]


def format_number(value: float) -> str:
    """Integers without decimals, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line for one run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> s = ImportSummary(
        ...     source_file="ledger.xlsx", sheets_processed=2, sections_found=4,
        ...     blocks_processed=10, records_written=100, records_failed=0,
        ...     warnings=1, parse_errors=0, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_records_per_sec=50.0,
        ... )
        >>> render_summary_line(s)
        'SUMMARY sheets=2 sections=4 blocks=10 records=100 failed=0 warnings=1 parse_errors=0 elapsed_sec=2 throughput_rps=50'
    """
    return (
        f"SUMMARY sheets={summary.sheets_processed} "
        f"sections={summary.sections_found} "
        f"blocks={summary.blocks_processed} "
        f"records={summary.records_written} "
        f"failed={summary.records_failed} "
        f"warnings={summary.warnings} "
        f"parse_errors={summary.parse_errors} "
        f"elapsed_sec={format_number(summary.elapsed_seconds)} "
        f"throughput_rps={format_number(summary.throughput_records_per_sec)}"
    )
