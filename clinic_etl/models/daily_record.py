from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

"""DailyRecord model: one doctor's activity on one calendar day.

Records are only built for days where at least one of the four raw
inputs is non-zero. Totals are derived in ``create`` and never taken
from the sheet's own total rows.
"""

__all__ = [
    "DailyRecord",
]


@dataclass(frozen=True)
class DailyRecord:
    doctor_key: str  # DoctorIdentity.natural_key
    doctor_name: str
    record_date: date
    clinic: str
    old_patient_count: int
    new_patient_count: int
    old_patient_amount: Decimal
    new_patient_amount: Decimal
    total_patient_count: int
    total_amount: Decimal

    @staticmethod
    def create(
        doctor_key: str,
        doctor_name: str,
        record_date: date,
        clinic: str,
        old_patient_count: int,
        new_patient_count: int,
        old_patient_amount: Decimal,
        new_patient_amount: Decimal,
    ) -> DailyRecord:
        """Build a record with totals computed from the components."""
        return DailyRecord(
            doctor_key=doctor_key,
            doctor_name=doctor_name,
            record_date=record_date,
            clinic=clinic,
            old_patient_count=old_patient_count,
            new_patient_count=new_patient_count,
            old_patient_amount=old_patient_amount,
            new_patient_amount=new_patient_amount,
            total_patient_count=old_patient_count + new_patient_count,
            total_amount=old_patient_amount + new_patient_amount,
        )

    @property
    def key(self) -> tuple[str, date]:
        """Idempotency key: one record per (doctor, date)."""
        return (self.doctor_key, self.record_date)
