from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from ..db.store import COLLECTIONS, PersistenceSink

"""Corrective bulk deletion of a bad import window.

Removes every row dated within [start, end] (both inclusive) from the
chosen collections, optionally only for one clinic. Used when a month was
imported with the wrong layout or clinic attribution and must be redone.
"""

__all__ = [
    "delete_import_window",
]

logger = logging.getLogger(__name__)


def delete_import_window(
    sink: PersistenceSink,
    start: date,
    end: date,
    clinic: str | None = None,
    collections: Iterable[str] = COLLECTIONS,
) -> dict[str, int]:
    """Delete rows in [start, end]; returns the deleted count per collection."""
    if start > end:
        raise ValueError(f"start {start.isoformat()} is after end {end.isoformat()}")

    deleted: dict[str, int] = {}
    for collection in collections:
        if collection not in COLLECTIONS:
            raise ValueError(f"unknown collection: {collection} (expected one of {list(COLLECTIONS)})")
        count = sink.delete_records_in_range(collection, start, end, clinic)
        deleted[collection] = count
        logger.info(
            "deleted %d %s between %s and %s%s",
            count,
            collection,
            start.isoformat(),
            end.isoformat(),
            f" clinic={clinic}" if clinic else "",
        )
    return deleted
