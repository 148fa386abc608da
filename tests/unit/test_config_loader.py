from __future__ import annotations

from pathlib import Path

import pytest

from clinic_etl.config.loader import ConfigError, config_from_dict, load_config
from clinic_etl.models.config_models import ImportConfig
from clinic_etl.models.layout import SheetLayout


def test_load_sample_config(write_config: Path):
    cfg = load_config(write_config)

    assert isinstance(cfg, ImportConfig)
    assert cfg.source_file == "./data/clinic_ledger.xlsx"
    assert cfg.layout.max_blocks_per_section == 3
    assert cfg.store.write_attempts == 2
    assert cfg.store.retry_backoff_seconds == 0
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.identity.email_domain == "example.com"


def test_empty_file_gives_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("", encoding="utf-8")

    cfg = load_config(p)

    assert cfg.layout == SheetLayout()
    assert cfg.target_sheets is None
    assert cfg.store.write_attempts == 3


def test_layout_override_including_offsets():
    cfg = config_from_dict({"layout": {"block_height": 14, "offsets": {"total_count": 13}}})
    assert cfg.layout.block_height == 14
    assert cfg.layout.offsets.total_count == 13
    assert cfg.layout.offsets.old_amount == 1


def test_na_strings():
    assert config_from_dict({}).na_strings == []
    assert config_from_dict({"na_strings": ["-", "n/a"]}).na_strings == ["-", "n/a"]
    with pytest.raises(ConfigError):
        config_from_dict({"na_strings": "NA"})


def test_unknown_key_rejected():
    with pytest.raises(ConfigError, match="validation failed"):
        config_from_dict({"layout": {"blok_height": 12}})


def test_wrong_type_rejected():
    with pytest.raises(ConfigError):
        config_from_dict({"store": {"write_attempts": "three"}})


def test_min_year_after_max_year():
    with pytest.raises(ConfigError, match="min_year"):
        config_from_dict({"layout": {"min_year": 2030, "max_year": 2020}})


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("layout: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_root_must_be_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


def test_repository_sample_config_is_valid():
    root = Path(__file__).resolve().parents[2]
    cfg = load_config(root / "config" / "import.yml")
    assert cfg.layout == SheetLayout()
