from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_PLACEHOLDER_DOMAIN,
    DEFAULT_SAMPLE_ROW_LIMIT,
    ClassifierConfig,
    DatabaseConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the bundled JSON schema
- Apply defaults for optional keys
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails schema validation (unknown keys, wrong types, ...).
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


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    cls_raw = data.get("classifier") or {}
    classifier = ClassifierConfig(
        mode=cls_raw.get("mode", "remote"),
        endpoint=cls_raw.get("endpoint"),
        api_key_env=cls_raw.get("api_key_env", "CLASSIFIER_API_KEY"),
        timeout_seconds=float(cls_raw.get("timeout_seconds", 30.0)),
    )
    if classifier.mode == "remote" and not classifier.endpoint:
        raise ConfigError("classifier.endpoint is required when classifier.mode is 'remote'")

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        event_id=data.get("event_id"),
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        sample_row_limit=data.get("sample_row_limit", DEFAULT_SAMPLE_ROW_LIMIT),
        placeholder_domain=data.get("placeholder_domain", DEFAULT_PLACEHOLDER_DOMAIN),
        classifier=classifier,
        database=db,
    )
