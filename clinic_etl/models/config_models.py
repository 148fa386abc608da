from __future__ import annotations

from dataclasses import dataclass, field

from .layout import SheetLayout

"""Config dataclasses for the clinic ledger importer.

Built by clinic_etl.config.loader from config/import.yml after schema
validation. Every section has defaults so an empty config file is valid.
"""

__all__ = [
    "DatabaseConfig",
    "IdentityConfig",
    "StoreConfig",
    "ImportConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class IdentityConfig:
    """How new doctor identities are derived."""
    email_domain: str = "example.com"
    default_clinic: str = "TK1"


@dataclass(frozen=True)
class StoreConfig:
    """Write retry policy for transient store failures."""
    write_attempts: int = 3
    retry_backoff_seconds: float = 0.5


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    source_file: str | None = None  # workbook path when none is given on the command line
    target_sheets: list[str] | None = None  # None = every sheet
    na_strings: list[str] = field(default_factory=list)  # cell texts read as empty; blank cells always are
    layout: SheetLayout = field(default_factory=SheetLayout)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
