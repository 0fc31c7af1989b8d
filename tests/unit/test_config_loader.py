from __future__ import annotations

from pathlib import Path

import pytest

from attendee_import.config.loader import ConfigError, load_config


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "import.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_config_ok(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.event_id == "evt-1"
    assert cfg.batch_size == 200
    assert cfg.sample_row_limit == 100
    assert cfg.classifier.mode == "headers"
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432


def test_defaults_applied(tmp_path: Path):
    cfg = load_config(_write(tmp_path, "classifier:\n  mode: headers\n"))
    assert cfg.event_id is None
    assert cfg.batch_size == 200
    assert cfg.placeholder_domain == "import.local"
    assert cfg.database.dsn is None


def test_remote_classifier_settings(tmp_path: Path):
    cfg = load_config(
        _write(
            tmp_path,
            "classifier:\n  mode: remote\n  endpoint: https://fn.example.test/analyze-csv-import\n"
            "  api_key_env: FN_KEY\n  timeout_seconds: 12\n",
        )
    )
    assert cfg.classifier.endpoint == "https://fn.example.test/analyze-csv-import"
    assert cfg.classifier.api_key_env == "FN_KEY"
    assert cfg.classifier.timeout_seconds == 12.0


def test_remote_without_endpoint_rejected(tmp_path: Path):
    with pytest.raises(ConfigError, match="endpoint"):
        load_config(_write(tmp_path, "classifier:\n  mode: remote\n"))


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml(tmp_path: Path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(tmp_path, "classifier: [unclosed\n"))


def test_root_must_be_mapping(tmp_path: Path):
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- a\n- b\n"))


@pytest.mark.parametrize(
    "text",
    [
        "unknown_key: 1\nclassifier:\n  mode: headers\n",
        "batch_size: 0\nclassifier:\n  mode: headers\n",
        "batch_size: many\nclassifier:\n  mode: headers\n",
        "classifier:\n  mode: magic\n",
        "classifier:\n  endpoint: https://x.test\n",
        "placeholder_domain: 'bad domain'\nclassifier:\n  mode: headers\n",
    ],
)
def test_schema_violations(tmp_path: Path, text: str):
    with pytest.raises(ConfigError, match="validation failed"):
        load_config(_write(tmp_path, text))
