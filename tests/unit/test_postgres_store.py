from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import psycopg2
import psycopg2.errors
import pytest

from clinic_etl.db.postgres_store import SCHEMA_SQL, PostgresStore
from clinic_etl.db.store import (
    DAILY_RECORDS,
    EXPENSES,
    ConflictError,
    StoreError,
    TransientStoreError,
    write_with_retries,
)
from clinic_etl.models.daily_record import DailyRecord
from clinic_etl.models.doctor import DoctorIdentity

"""PostgresStore against a mocked psycopg2 cursor (no database needed)."""


def _record() -> DailyRecord:
    return DailyRecord.create(
        doctor_key="dr.janedoe",
        doctor_name="Dr. Jane Doe",
        record_date=date(2024, 3, 5),
        clinic="TK1",
        old_patient_count=3,
        new_patient_count=2,
        old_patient_amount=Decimal(100),
        new_patient_amount=Decimal(50),
    )


def test_ensure_schema_runs_ddl():
    cur = MagicMock()
    PostgresStore(cur).ensure_schema()
    cur.execute.assert_called_once_with(SCHEMA_SQL, None)


def test_find_identity_maps_row():
    cur = MagicMock()
    cur.fetchone.return_value = ("dr.janedoe", "Dr. Jane Doe", "TK1", "dr.janedoe@example.com", "doctor")

    ident = PostgresStore(cur).find_identity("dr.janedoe")

    assert ident == DoctorIdentity("dr.janedoe", "Dr. Jane Doe", "TK1", "dr.janedoe@example.com", "doctor")
    sql, params = cur.execute.call_args[0]
    assert "FROM doctors WHERE natural_key = %s" in sql
    assert params == ("dr.janedoe",)


def test_find_identity_absent():
    cur = MagicMock()
    cur.fetchone.return_value = None
    assert PostgresStore(cur).find_identity("nobody") is None


def test_create_identity_unique_violation_is_conflict():
    cur = MagicMock()
    cur.execute.side_effect = psycopg2.errors.UniqueViolation("duplicate key")
    ident = DoctorIdentity("dr.janedoe", "Dr. Jane Doe", "TK1", "dr.janedoe@example.com")

    with pytest.raises(ConflictError):
        PostgresStore(cur).create_identity(ident)


def test_write_daily_record_upserts():
    cur = MagicMock()
    PostgresStore(cur).write_daily_record(_record())

    sql, params = cur.execute.call_args[0]
    assert "ON CONFLICT (doctor_key, record_date) DO UPDATE" in sql
    assert params[:4] == ("dr.janedoe", date(2024, 3, 5), "Dr. Jane Doe", "TK1")
    assert params[-2:] == (5, Decimal(150))


@pytest.mark.parametrize(
    "exc,expected",
    [
        (psycopg2.OperationalError("server closed the connection"), TransientStoreError),
        (psycopg2.InterfaceError("connection already closed"), TransientStoreError),
        (psycopg2.DataError("numeric field overflow"), StoreError),
    ],
)
def test_error_translation(exc, expected):
    cur = MagicMock()
    cur.connection.closed = 0
    cur.execute.side_effect = exc

    with pytest.raises(expected) as info:
        PostgresStore(cur).write_daily_record(_record())
    assert "write record dr.janedoe/2024-03-05" in str(info.value)


def test_data_error_is_not_transient():
    cur = MagicMock()
    cur.execute.side_effect = psycopg2.DataError("bad")
    with pytest.raises(StoreError) as info:
        PostgresStore(cur).write_daily_record(_record())
    assert not isinstance(info.value, TransientStoreError)


@pytest.mark.parametrize(
    "exc",
    [psycopg2.OperationalError("server closed the connection"), psycopg2.InterfaceError("connection already closed")],
)
def test_closed_connection_is_not_retried(exc):
    cur = MagicMock()
    cur.connection.closed = 2
    cur.execute.side_effect = exc
    sleeps: list[float] = []

    with pytest.raises(StoreError, match="connection lost") as info:
        write_with_retries(lambda: PostgresStore(cur).write_daily_record(_record()), attempts=3, sleep=sleeps.append)

    assert not isinstance(info.value, TransientStoreError)
    assert cur.execute.call_count == 1
    assert sleeps == []


def test_delete_records_in_range_with_clinic():
    cur = MagicMock()
    cur.rowcount = 7

    deleted = PostgresStore(cur).delete_records_in_range(DAILY_RECORDS, date(2025, 3, 1), date(2025, 3, 31), "TK2")

    assert deleted == 7
    sql, params = cur.execute.call_args[0]
    assert sql == "DELETE FROM daily_records WHERE record_date BETWEEN %s AND %s AND clinic = %s"
    assert params == (date(2025, 3, 1), date(2025, 3, 31), "TK2")


def test_delete_expenses_without_clinic():
    cur = MagicMock()
    cur.rowcount = 0

    PostgresStore(cur).delete_records_in_range(EXPENSES, date(2025, 3, 1), date(2025, 3, 31))

    sql, params = cur.execute.call_args[0]
    assert sql == "DELETE FROM expenses WHERE expense_date BETWEEN %s AND %s"
    assert params == (date(2025, 3, 1), date(2025, 3, 31))


def test_delete_unknown_collection():
    cur = MagicMock()
    with pytest.raises(StoreError):
        PostgresStore(cur).delete_records_in_range("doctors; DROP TABLE x", date(2025, 1, 1), date(2025, 1, 2))
    cur.execute.assert_not_called()
