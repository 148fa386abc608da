from __future__ import annotations

import logging
from datetime import date
from typing import Any

import psycopg2
import psycopg2.errors

from ..models.daily_record import DailyRecord
from ..models.doctor import DoctorIdentity
from .store import DAILY_RECORDS, EXPENSES, ConflictError, StoreError, TransientStoreError

"""PostgreSQL persistence sink (psycopg2).

The cursor is expected to come from an autocommit connection so that one
failed statement does not abort the rest of the run. Daily records are
upserted on (doctor_key, record_date): re-running or resuming an import
never duplicates rows.
"""

__all__ = [
    "SCHEMA_SQL",
    "PostgresStore",
]

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS doctors (
    natural_key     TEXT PRIMARY KEY,
    display_name    TEXT NOT NULL,
    email           TEXT NOT NULL,
    default_clinic  TEXT NOT NULL,
    role            TEXT NOT NULL DEFAULT 'doctor',
    created_at      TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE TABLE IF NOT EXISTS daily_records (
    doctor_key          TEXT NOT NULL REFERENCES doctors (natural_key),
    record_date         DATE NOT NULL,
    doctor_name         TEXT NOT NULL,
    clinic              TEXT NOT NULL,
    old_patient_count   INTEGER NOT NULL CHECK (old_patient_count >= 0),
    new_patient_count   INTEGER NOT NULL CHECK (new_patient_count >= 0),
    old_patient_amount  NUMERIC NOT NULL CHECK (old_patient_amount >= 0),
    new_patient_amount  NUMERIC NOT NULL CHECK (new_patient_amount >= 0),
    total_patient_count INTEGER NOT NULL,
    total_amount        NUMERIC NOT NULL,
    created_at          TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at          TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (doctor_key, record_date)
);
CREATE TABLE IF NOT EXISTS expenses (
    id           BIGSERIAL PRIMARY KEY,
    doctor_key   TEXT REFERENCES doctors (natural_key),
    expense_date DATE NOT NULL,
    clinic       TEXT NOT NULL,
    amount       NUMERIC NOT NULL,
    description  TEXT NOT NULL DEFAULT '',
    category     TEXT NOT NULL DEFAULT ''
);
"""

# collection -> (table, date column); table names never come from user input
_COLLECTION_TABLES = {
    DAILY_RECORDS: ("daily_records", "record_date"),
    EXPENSES: ("expenses", "expense_date"),
}

_UPSERT_DAILY_RECORD = """
INSERT INTO daily_records (
    doctor_key, record_date, doctor_name, clinic,
    old_patient_count, new_patient_count, old_patient_amount, new_patient_amount,
    total_patient_count, total_amount
) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (doctor_key, record_date) DO UPDATE SET
    doctor_name = EXCLUDED.doctor_name,
    clinic = EXCLUDED.clinic,
    old_patient_count = EXCLUDED.old_patient_count,
    new_patient_count = EXCLUDED.new_patient_count,
    old_patient_amount = EXCLUDED.old_patient_amount,
    new_patient_amount = EXCLUDED.new_patient_amount,
    total_patient_count = EXCLUDED.total_patient_count,
    total_amount = EXCLUDED.total_amount,
    updated_at = now()
"""


def _translate(e: Exception, action: str, connection_closed: bool = False) -> StoreError:
    if isinstance(e, psycopg2.errors.UniqueViolation):
        return ConflictError(f"{action}: {e}")
    if connection_closed:
        return StoreError(f"{action}: connection lost: {e}")
    if isinstance(e, (psycopg2.OperationalError, psycopg2.InterfaceError)):
        return TransientStoreError(f"{action}: {e}")
    return StoreError(f"{action}: {e}")


class PostgresStore:
    """Persistence sink over one psycopg2 cursor.

    OperationalError and InterfaceError are reported as transient only while
    the cursor's connection is still open, so retries cover statement-level
    failures. Once the connection has closed, every call fails with a plain
    StoreError; the store does not reconnect.
    """

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    def _execute(self, action: str, sql: str, params: tuple[Any, ...] | None = None) -> None:
        try:
            self._cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise _translate(e, action, self._cursor.connection.closed != 0) from e

    def ensure_schema(self) -> None:
        self._execute("create schema", SCHEMA_SQL)

    def find_identity(self, natural_key: str) -> DoctorIdentity | None:
        self._execute(
            "find identity",
            "SELECT natural_key, display_name, default_clinic, email, role "
            "FROM doctors WHERE natural_key = %s",
            (natural_key,),
        )
        row = self._cursor.fetchone()
        if row is None:
            return None
        return DoctorIdentity(
            natural_key=row[0],
            display_name=row[1],
            default_clinic=row[2],
            email=row[3],
            role=row[4],
        )

    def create_identity(self, identity: DoctorIdentity) -> DoctorIdentity:
        self._execute(
            f"create identity {identity.natural_key}",
            "INSERT INTO doctors (natural_key, display_name, email, default_clinic, role) "
            "VALUES (%s, %s, %s, %s, %s)",
            (
                identity.natural_key,
                identity.display_name,
                identity.email,
                identity.default_clinic,
                identity.role,
            ),
        )
        return identity

    def write_daily_record(self, record: DailyRecord) -> None:
        self._execute(
            f"write record {record.doctor_key}/{record.record_date.isoformat()}",
            _UPSERT_DAILY_RECORD,
            (
                record.doctor_key,
                record.record_date,
                record.doctor_name,
                record.clinic,
                record.old_patient_count,
                record.new_patient_count,
                record.old_patient_amount,
                record.new_patient_amount,
                record.total_patient_count,
                record.total_amount,
            ),
        )

    def delete_records_in_range(
        self, collection: str, start: date, end: date, clinic: str | None = None
    ) -> int:
        if collection not in _COLLECTION_TABLES:
            raise StoreError(f"unknown collection: {collection}")
        table, date_col = _COLLECTION_TABLES[collection]
        sql = f"DELETE FROM {table} WHERE {date_col} BETWEEN %s AND %s"
        params: tuple[Any, ...] = (start, end)
        if clinic is not None:
            sql += " AND clinic = %s"
            params += (clinic,)
        self._execute(f"delete {collection}", sql, params)
        deleted = self._cursor.rowcount
        logger.debug("deleted %d rows from %s between %s and %s clinic=%s", deleted, table, start, end, clinic)
        return deleted
