from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ..models.daily_record import DailyRecord
from ..models.doctor import DoctorIdentity
from .store import DAILY_RECORDS, EXPENSES, ConflictError, StoreError

"""In-memory persistence sink.

Used for --dry-run imports and tests. Same semantics as the PostgreSQL
sink: identities unique by natural key, daily records upserted by
(doctor_key, record_date).
"""

__all__ = [
    "ExpenseEntry",
    "InMemoryStore",
]


@dataclass(frozen=True)
class ExpenseEntry:
    doctor_key: str
    expense_date: date
    clinic: str
    amount: Decimal
    description: str = ""
    category: str = ""


class InMemoryStore:
    def __init__(self) -> None:
        self.identities: dict[str, DoctorIdentity] = {}
        self.daily_records: dict[tuple[str, date], DailyRecord] = {}
        self.expenses: list[ExpenseEntry] = []
        self.create_calls = 0

    def find_identity(self, natural_key: str) -> DoctorIdentity | None:
        return self.identities.get(natural_key)

    def create_identity(self, identity: DoctorIdentity) -> DoctorIdentity:
        self.create_calls += 1
        if identity.natural_key in self.identities:
            raise ConflictError(f"identity already exists: {identity.natural_key}")
        self.identities[identity.natural_key] = identity
        return identity

    def write_daily_record(self, record: DailyRecord) -> None:
        self.daily_records[record.key] = record

    def add_expense(self, expense: ExpenseEntry) -> None:
        self.expenses.append(expense)

    def delete_records_in_range(
        self, collection: str, start: date, end: date, clinic: str | None = None
    ) -> int:
        def matches(d: date, c: str) -> bool:
            return start <= d <= end and (clinic is None or c == clinic)

        if collection == DAILY_RECORDS:
            doomed = [k for k, r in self.daily_records.items() if matches(r.record_date, r.clinic)]
            for k in doomed:
                del self.daily_records[k]
            return len(doomed)

        if collection == EXPENSES:
            kept = [e for e in self.expenses if not matches(e.expense_date, e.clinic)]
            deleted = len(self.expenses) - len(kept)
            self.expenses = kept
            return deleted

        raise StoreError(f"unknown collection: {collection}")
