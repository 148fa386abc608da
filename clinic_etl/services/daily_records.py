from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from ..excel.grid import CellGrid
from ..models.daily_record import DailyRecord
from ..models.doctor import DoctorIdentity
from ..models.layout import SheetLayout
from ..models.section import DoctorBlock
from .clinic_policy import resolve_clinic

"""Daily record builder.

For every day column of a doctor block the four raw figures (old/new
amount, old/new patient count) are read and coerced to numbers. Days where
all four are zero produce nothing. Days that do not exist in the month
(e.g. 31 April) or carry negative figures are rejected and reported rather
than rolled over into the next month. The block is read completely before
any record is returned.
"""

__all__ = [
    "DayValues",
    "InvalidDay",
    "TotalsMismatch",
    "BlockRecords",
    "to_amount",
    "to_count",
    "read_day_values",
    "build_daily_records",
]

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


@dataclass(frozen=True)
class DayValues:
    day: int
    old_amount: Decimal
    new_amount: Decimal
    old_count: int
    new_count: int
    sheet_total_amount: Decimal | None = None  # as written in the sheet, if present
    sheet_total_count: int | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.old_amount == 0
            and self.new_amount == 0
            and self.old_count == 0
            and self.new_count == 0
        )

    @property
    def has_negative(self) -> bool:
        return min(self.old_amount, self.new_amount, self.old_count, self.new_count) < 0


@dataclass(frozen=True)
class InvalidDay:
    day: int
    column: int
    reason: str


@dataclass(frozen=True)
class TotalsMismatch:
    day: int
    column: int
    field: str  # "amount" | "count"
    computed: Decimal | int
    in_sheet: Decimal | int


@dataclass
class BlockRecords:
    records: list[DailyRecord] = field(default_factory=list)
    invalid_days: list[InvalidDay] = field(default_factory=list)
    totals_mismatches: list[TotalsMismatch] = field(default_factory=list)


def _to_decimal(value: Any) -> Decimal | None:
    """Numeric cell -> Decimal; None for absent or non-numeric cells."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def to_amount(value: Any) -> Decimal:
    """Coerce a raw amount cell; missing or non-numeric -> 0."""
    parsed = _to_decimal(value)
    return parsed if parsed is not None else ZERO


def to_count(value: Any) -> int:
    """Coerce a raw patient-count cell; missing or non-numeric -> 0, fractions rounded."""
    parsed = _to_decimal(value)
    if parsed is None:
        return 0
    return int(parsed.to_integral_value())


def read_day_values(grid: CellGrid, block: DoctorBlock, layout: SheetLayout, day: int) -> DayValues:
    col = layout.day_column(day)
    off = layout.offsets
    base = block.start_row
    total_amount = _to_decimal(grid.get(base + off.total_amount, col))
    total_count = _to_decimal(grid.get(base + off.total_count, col))
    return DayValues(
        day=day,
        old_amount=to_amount(grid.get(base + off.old_amount, col)),
        new_amount=to_amount(grid.get(base + off.new_amount, col)),
        old_count=to_count(grid.get(base + off.old_count, col)),
        new_count=to_count(grid.get(base + off.new_count, col)),
        sheet_total_amount=total_amount,
        sheet_total_count=int(total_count.to_integral_value()) if total_count is not None else None,
    )


def _check_totals(values: DayValues, record: DailyRecord, column: int) -> list[TotalsMismatch]:
    mismatches: list[TotalsMismatch] = []
    if values.sheet_total_amount is not None and values.sheet_total_amount != record.total_amount:
        mismatches.append(
            TotalsMismatch(values.day, column, "amount", record.total_amount, values.sheet_total_amount)
        )
    if values.sheet_total_count is not None and values.sheet_total_count != record.total_patient_count:
        mismatches.append(
            TotalsMismatch(values.day, column, "count", record.total_patient_count, values.sheet_total_count)
        )
    return mismatches


def build_daily_records(
    grid: CellGrid,
    block: DoctorBlock,
    identity: DoctorIdentity,
    layout: SheetLayout,
    resolve: Callable[[date, str | None], str] = resolve_clinic,
) -> BlockRecords:
    """Build the DailyRecords of one doctor block, ascending by day."""
    result = BlockRecords()
    year = block.section.year
    month = block.section.calendar_month

    # read the whole block first
    day_values = [read_day_values(grid, block, layout, day) for day in range(1, layout.days_in_month + 1)]

    for values in day_values:
        if values.is_empty:
            continue
        column = layout.day_column(values.day)
        if values.has_negative:
            result.invalid_days.append(InvalidDay(values.day, column, "negative value"))
            continue
        try:
            record_date = date(year, month, values.day)
        except ValueError as e:
            result.invalid_days.append(InvalidDay(values.day, column, f"invalid date: {e}"))
            continue

        record = DailyRecord.create(
            doctor_key=identity.natural_key,
            doctor_name=identity.display_name,
            record_date=record_date,
            clinic=resolve(record_date, block.sheet_name),
            old_patient_count=values.old_count,
            new_patient_count=values.new_count,
            old_patient_amount=values.old_amount,
            new_patient_amount=values.new_amount,
        )
        if layout.check_totals:
            result.totals_mismatches.extend(_check_totals(values, record, column))
        result.records.append(record)

    logger.debug(
        "sheet=%s row=%d doctor=%s records=%d invalid_days=%d",
        block.sheet_name, block.start_row, identity.natural_key,
        len(result.records), len(result.invalid_days),
    )
    return result
