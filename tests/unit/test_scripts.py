from __future__ import annotations

import importlib.util
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from unittest.mock import MagicMock

import pytest

from clinic_etl.db.memory_store import InMemoryStore
from clinic_etl.models.config_models import ImportConfig
from clinic_etl.services.orchestrator import run_import

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def _load(name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_generated_workbook_imports_cleanly(temp_workdir: Path):
    gen = _load("gen_sample_workbook")
    out = temp_workdir / "data" / "sample.xlsx"

    assert gen.main(["--output", str(out), "--seed", "7", "--activity", "0.5"]) == 0

    summary = run_import(ImportConfig(), out, InMemoryStore(), sleep=lambda _: None)
    assert summary.sheets_processed == 3
    assert summary.sections_found == 17
    assert summary.parse_errors == 0
    assert summary.records_failed == 0
    assert summary.records_written > 0


def test_generator_rejects_bad_activity(temp_workdir: Path):
    gen = _load("gen_sample_workbook")
    assert gen.main(["--output", str(temp_workdir / "x.xlsx"), "--activity", "2"]) == 1


@pytest.fixture()
def delete_script(monkeypatch):
    module = _load("delete_import_window")
    cur = MagicMock()
    cur.rowcount = 4
    cur.configs = []

    @contextmanager
    def fake_connection(cfg):
        cur.configs.append(cfg)
        yield cur

    monkeypatch.setattr(module, "db_connection", fake_connection)
    return module, cur


def test_delete_with_yes(delete_script, temp_workdir: Path, capsys):
    module, cur = delete_script

    code = module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--clinic", "TK2", "--yes"])

    assert code == 0
    assert cur.execute.call_count == 2
    out = capsys.readouterr().out
    assert "daily_records: 4 deleted" in out
    assert "expenses: 4 deleted" in out


def test_delete_aborts_without_confirmation(delete_script, temp_workdir: Path, monkeypatch):
    module, cur = delete_script
    monkeypatch.setattr("builtins.input", lambda _: "no")

    code = module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--collection", "daily_records"])

    assert code == 1
    cur.execute.assert_not_called()


def test_delete_confirmed_single_collection(delete_script, temp_workdir: Path, monkeypatch):
    module, cur = delete_script
    monkeypatch.setattr("builtins.input", lambda _: "yes")

    code = module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--collection", "expenses"])

    assert code == 0
    sql = cur.execute.call_args[0][0]
    assert sql.startswith("DELETE FROM expenses")


def test_delete_rejects_inverted_window(delete_script, temp_workdir: Path):
    module, cur = delete_script
    assert module.main(["--start", "2025-04-01", "--end", "2025-03-01", "--yes"]) == 1
    cur.execute.assert_not_called()


def test_delete_uses_default_config_file(delete_script, write_config: Path):
    module, cur = delete_script

    assert module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--yes"]) == 0

    (cfg,) = cur.configs
    assert cfg.database.user == "appuser"
    assert cfg.database.database == "clinic"


def test_delete_without_config_file_uses_defaults(delete_script, temp_workdir: Path):
    module, cur = delete_script

    assert module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--yes"]) == 0

    (cfg,) = cur.configs
    assert cfg.database == ImportConfig().database


def test_delete_invalid_default_config(delete_script, temp_workdir: Path):
    module, cur = delete_script
    (temp_workdir / "config" / "import.yml").write_text("store:\n  write_attempts: 0\n", encoding="utf-8")

    assert module.main(["--start", "2025-03-01", "--end", "2025-03-31", "--yes"]) == 1
    cur.execute.assert_not_called()
