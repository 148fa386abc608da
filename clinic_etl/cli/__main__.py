from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from clinic_etl.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from clinic_etl.db.memory_store import InMemoryStore
from clinic_etl.db.postgres_store import PostgresStore
from clinic_etl.db.store import PersistenceSink, StoreError
from clinic_etl.excel.reader import FatalInputError
from clinic_etl.logging.init import log_summary, set_debug, setup_logging
from clinic_etl.models.config_models import DatabaseConfig, ImportConfig
from clinic_etl.services.orchestrator import describe_workbook, run_import
from clinic_etl.services.summary import render_summary_line

"""CLI entrypoint: import one ledger workbook.

    python -m clinic_etl.cli path/to/ledger.xlsx [--config config/import.yml]
                             [--dry-run] [--inspect-data] [--debug]

Exit codes:
    0  at least one daily record written (partial failures are in the SUMMARY)
    1  fatal: bad config, unreadable workbook, database unreachable
    2  the run completed but wrote zero records
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_NO_RECORDS = 2


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Build the connection string.

    Precedence:
        1. DATABASE_URL / PGDSN environment variables (``.env`` is loaded first)
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the ``database`` section of the config file
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper over psycopg2)
    """Yield a cursor on an autocommit connection; each record write stands alone."""
    conn = psycopg2.connect(resolve_dsn(cfg.database))
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its connection settings win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Clinic ledger workbook -> daily doctor records importer")
    p.add_argument("workbook", nargs="?", help="Ledger .xlsx file (default: source_file from config)")
    p.add_argument("--config", default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--dry-run", action="store_true", help="Parse and build records in memory, write nothing")
    p.add_argument("--inspect-data", action="store_true", help="Print detected sections and doctors then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def load_cfg(config_arg: str | Path | None) -> ImportConfig:
    """Load --config, else config/import.yml when present, else the built-in defaults."""
    if config_arg is None and not DEFAULT_CONFIG_PATH.exists():
        return ImportConfig()
    return load_config(Path(config_arg) if config_arg else DEFAULT_CONFIG_PATH)


def _run(cfg: ImportConfig, source: Path, sink: PersistenceSink) -> int:
    summary = run_import(cfg, source, sink)
    # render_summary_line includes the label; log_summary adds it again
    log_summary(render_summary_line(summary).removeprefix("SUMMARY "))
    return EXIT_SUCCESS if summary.succeeded else EXIT_NO_RECORDS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no list is given ([] must stay empty under pytest)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug()

    try:
        cfg = load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source_arg = args.workbook or cfg.source_file
    if not source_arg:
        logger.error("no workbook given (positional argument or source_file in config)")
        return EXIT_FATAL
    source = Path(source_arg)
    logger.info(f"Importing workbook: {source}")

    try:
        if args.inspect_data:
            for line in describe_workbook(cfg, source):
                print(line)
            return EXIT_SUCCESS

        if args.dry_run:
            logger.info("mode=dry-run (in-memory store)")
            return _run(cfg, source, InMemoryStore())

        try:
            with db_connection(cfg) as cur:
                store = PostgresStore(cur)
                store.ensure_schema()
                logger.info("mode=live")
                return _run(cfg, source, store)
        except (psycopg2.Error, StoreError) as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL
    except FatalInputError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
