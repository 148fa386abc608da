#!/usr/bin/env python3
"""Delete daily records and/or expenses dated within a window.

Corrective tool for a month that was imported with the wrong layout or
clinic attribution. Both dates are inclusive.

    python scripts/delete_import_window.py --start 2025-03-01 --end 2025-03-31 \
        [--clinic TK2] [--collection daily_records|expenses|all] [--yes]
"""
from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from clinic_etl.cli.__main__ import db_connection, load_cfg
from clinic_etl.config.loader import ConfigError
from clinic_etl.db.postgres_store import PostgresStore
from clinic_etl.db.store import COLLECTIONS, StoreError
from clinic_etl.logging.init import setup_logging
from clinic_etl.services.cleanup import delete_import_window


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO date (YYYY-MM-DD): {value}") from e


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Delete imported rows dated within [start, end]")
    p.add_argument("--start", type=_parse_date, required=True)
    p.add_argument("--end", type=_parse_date, required=True)
    p.add_argument("--clinic", default=None, help="Only rows for this clinic (e.g. TK1)")
    p.add_argument("--collection", choices=[*COLLECTIONS, "all"], default="all")
    p.add_argument("--config", type=Path, default=None)
    p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = p.parse_args(argv)

    logger = setup_logging()
    if Path(".env").exists():
        load_dotenv(dotenv_path=Path(".env"), override=True)

    try:
        cfg = load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return 1

    collections = list(COLLECTIONS) if args.collection == "all" else [args.collection]
    scope = f"clinic={args.clinic}" if args.clinic else "all clinics"
    print(f"About to delete {', '.join(collections)} from {args.start} to {args.end} ({scope}).")
    if not args.yes:
        answer = input("Type 'yes' to continue: ").strip().lower()
        if answer != "yes":
            print("Aborted.")
            return 1

    try:
        with db_connection(cfg) as cur:
            deleted = delete_import_window(PostgresStore(cur), args.start, args.end, args.clinic, collections)
    except ValueError as e:
        logger.error(str(e))
        return 1
    except (psycopg2.Error, StoreError) as e:
        logger.error(f"database: {e}")
        return 1

    for collection, count in deleted.items():
        print(f"{collection}: {count} deleted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
