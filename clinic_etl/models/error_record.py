from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Every recoverable problem met during an import (bad month header, missing
doctor name, invalid day, totals mismatch, failed store write) becomes one
ErrorRecord. row=-1 is the sentinel for sheet/file-level problems where no
single row applies.
"""

__all__ = [
    "ErrorRecord",
    "STRUCTURAL_PARSE_ERROR",
    "MISSING_DOCTOR_NAME",
    "EMPTY_BLOCK",
    "INVALID_DAY",
    "TOTALS_MISMATCH",
    "IDENTITY_ERROR",
    "STORE_ERROR",
]

STRUCTURAL_PARSE_ERROR = "STRUCTURAL_PARSE_ERROR"
MISSING_DOCTOR_NAME = "MISSING_DOCTOR_NAME"
EMPTY_BLOCK = "EMPTY_BLOCK"
INVALID_DAY = "INVALID_DAY"
TOTALS_MISMATCH = "TOTALS_MISMATCH"
IDENTITY_ERROR = "IDENTITY_ERROR"
STORE_ERROR = "STORE_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook filename being processed
        sheet: Sheet name within the workbook
        row: Row number (1-based). -1 when the row is unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict keeps the key set fixed
        return json.dumps(asdict(self), ensure_ascii=False)
