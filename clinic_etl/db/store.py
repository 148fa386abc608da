from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date
from typing import Protocol, TypeVar

from ..models.daily_record import DailyRecord
from ..models.doctor import DoctorIdentity

"""Persistence sink contract.

The importer only needs four operations from the destination store; any
backend (PostgreSQL, in-memory) implements them. Errors:

- StoreError: a write/read failed; reported per record, never aborts the run
- TransientStoreError: a StoreError worth retrying (connection reset, timeout)
- ConflictError: the natural key already exists on create_identity
"""

__all__ = [
    "DAILY_RECORDS",
    "EXPENSES",
    "COLLECTIONS",
    "StoreError",
    "TransientStoreError",
    "ConflictError",
    "PersistenceSink",
    "write_with_retries",
]

logger = logging.getLogger(__name__)

DAILY_RECORDS = "daily_records"
EXPENSES = "expenses"
COLLECTIONS = (DAILY_RECORDS, EXPENSES)

T = TypeVar("T")


class StoreError(Exception):
    pass


class TransientStoreError(StoreError):
    pass


class ConflictError(StoreError):
    pass


class PersistenceSink(Protocol):
    def find_identity(self, natural_key: str) -> DoctorIdentity | None: ...

    def create_identity(self, identity: DoctorIdentity) -> DoctorIdentity:
        """Persist a new identity. Raises ConflictError if the key exists."""
        ...

    def write_daily_record(self, record: DailyRecord) -> None:
        """Insert or replace the record keyed by (doctor_key, record_date)."""
        ...

    def delete_records_in_range(
        self, collection: str, start: date, end: date, clinic: str | None = None
    ) -> int:
        """Delete rows dated within [start, end] (inclusive); returns the count deleted."""
        ...


def write_with_retries(
    operation: Callable[[], T],
    attempts: int = 3,
    backoff_seconds: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a store operation, retrying TransientStoreError with exponential backoff.

    A plain StoreError is raised immediately; the last TransientStoreError is
    raised once ``attempts`` are used up.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except TransientStoreError as e:
            if attempt == attempts:
                raise
            wait = backoff_seconds * (2 ** (attempt - 1))
            logger.debug("transient store error (attempt %d/%d), retrying in %.2fs: %s", attempt, attempts, wait, e)
            sleep(wait)
    raise AssertionError("unreachable")  # pragma: no cover
