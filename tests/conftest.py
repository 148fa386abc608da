# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from clinic_etl.excel.sample import section_rows, write_ledger
from clinic_etl.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ./data/clinic_ledger.xlsx
layout:
  max_blocks_per_section: 3
  stop_at_blank_label: true
identity:
  email_domain: example.com
  default_clinic: TK1
store:
  write_attempts: 2
  retry_backoff_seconds: 0
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: clinic
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Factory writing raw sheet rows to data/<name> (header=False, index=False)."""

    def _make(sheets: Mapping[str, Sequence[Sequence[Any]]], name: str = "clinic_ledger.xlsx") -> Path:
        return write_ledger(temp_workdir / "data" / name, sheets)

    return _make


@pytest.fixture()
def ledger_sheets() -> dict[str, list[list[Any]]]:
    """Two sheets, three sections, four doctor blocks, six non-empty days.

    TK1-Data: Mar--2024 (Dr. Jane Doe: day 5 = 100/50/3/2, day 6 = 200/0/4/0;
              Dr. Ken Ito: day 1 = 0/80/0/1), Sep--2024 (Dr. Jane Doe: day 2)
    TK2-Data: Oct--2024 (Dr. Jane  Doe: days 1 and 2)
    """
    tk1 = section_rows(
        3,
        2024,
        [
            ("Dr. Jane Doe", {5: (100, 50, 3, 2), 6: (200, 0, 4, 0)}),
            ("Dr. Ken Ito", {1: (0, 80, 0, 1)}),
        ],
    ) + section_rows(9, 2024, [("Dr. Jane Doe", {2: (10, 0, 1, 0)})])
    tk2 = section_rows(10, 2024, [("Dr. Jane  Doe", {1: (30, 0, 1, 0), 2: (0, 40, 0, 2)})])
    return {"TK1-Data": tk1, "TK2-Data": tk2}


@pytest.fixture()
def ledger_workbook(make_workbook, ledger_sheets) -> Path:
    return make_workbook(ledger_sheets)


@pytest.fixture(autouse=True)
def _fresh_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()
