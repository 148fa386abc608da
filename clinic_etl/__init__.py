"""Clinic ledger importer: positional workbook -> doctor identities + daily records."""

__version__ = "0.1.0"
