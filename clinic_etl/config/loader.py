from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, IdentityConfig, ImportConfig, StoreConfig
from ..models.layout import BlockOffsets, SheetLayout

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against the bundled JSON schema (unknown keys rejected)
- Apply defaults for every omitted section / key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "config_from_dict",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation (unknown keys, wrong types,
            out-of-range values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_layout(raw: dict[str, Any]) -> SheetLayout:
    offsets = BlockOffsets(**raw.get("offsets", {}))
    fields = {k: v for k, v in raw.items() if k != "offsets"}
    layout = SheetLayout(offsets=offsets, **fields)
    if layout.min_year > layout.max_year:
        raise ConfigError(
            f"config validation failed: layout.min_year ({layout.min_year}) "
            f"> layout.max_year ({layout.max_year})"
        )
    return layout


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    """Validate a raw mapping and turn it into an ImportConfig."""
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    return ImportConfig(
        source_file=data.get("source_file"),
        target_sheets=data.get("target_sheets"),
        na_strings=list(data.get("na_strings") or []),
        layout=_build_layout(data.get("layout") or {}),
        identity=IdentityConfig(**(data.get("identity") or {})),
        store=StoreConfig(**(data.get("store") or {})),
        database=DatabaseConfig(**db_raw),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    return config_from_dict(data)
