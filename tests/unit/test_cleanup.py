from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from clinic_etl.db.memory_store import ExpenseEntry, InMemoryStore
from clinic_etl.db.store import DAILY_RECORDS, EXPENSES
from clinic_etl.models.daily_record import DailyRecord
from clinic_etl.services.cleanup import delete_import_window


def _store() -> InMemoryStore:
    store = InMemoryStore()
    for day, clinic in [(1, "TK1"), (15, "TK2"), (31, "TK2")]:
        store.write_daily_record(
            DailyRecord.create("dr.a", "Dr. A", date(2025, 3, day), clinic, 1, 0, Decimal(10), Decimal(0))
        )
    store.write_daily_record(DailyRecord.create("dr.a", "Dr. A", date(2025, 4, 1), "TK2", 1, 0, Decimal(10), Decimal(0)))
    store.add_expense(ExpenseEntry("dr.a", date(2025, 3, 10), "TK2", Decimal(5)))
    store.add_expense(ExpenseEntry("dr.a", date(2025, 3, 11), "TK1", Decimal(5)))
    return store


def test_deletes_window_from_all_collections():
    store = _store()
    deleted = delete_import_window(store, date(2025, 3, 1), date(2025, 3, 31))

    assert deleted == {DAILY_RECORDS: 3, EXPENSES: 2}
    assert [d for _, d in store.daily_records] == [date(2025, 4, 1)]
    assert store.expenses == []


def test_clinic_filter():
    store = _store()
    deleted = delete_import_window(store, date(2025, 3, 1), date(2025, 3, 31), clinic="TK2")

    assert deleted == {DAILY_RECORDS: 2, EXPENSES: 1}
    assert sorted(d.day for _, d in store.daily_records) == [1, 1]
    assert [e.clinic for e in store.expenses] == ["TK1"]


def test_single_collection():
    store = _store()
    assert delete_import_window(store, date(2025, 3, 1), date(2025, 3, 31), collections=[EXPENSES]) == {EXPENSES: 2}
    assert len(store.daily_records) == 4


def test_start_after_end():
    with pytest.raises(ValueError):
        delete_import_window(InMemoryStore(), date(2025, 4, 1), date(2025, 3, 1))


def test_unknown_collection():
    with pytest.raises(ValueError):
        delete_import_window(InMemoryStore(), date(2025, 3, 1), date(2025, 3, 31), collections=["doctors"])
