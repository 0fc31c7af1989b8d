# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from attendee_import.analysis.classifier import ColumnSuggestion
from attendee_import.db.store import InMemoryTicketStore
from attendee_import.logging.init import reset_logging


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
    return """event_id: evt-1
batch_size: 200
sample_row_limit: 100
classifier:
  mode: headers
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


class StaticClassifier:
    """Classification service double answering with fixed labels."""

    def __init__(self, name=None, email=None, phone=None, error: Exception | None = None):
        self.suggestion = ColumnSuggestion(name_column=name, email_column=email, phone_column=phone)
        self.error = error
        self.calls: list[tuple[list[str], str]] = []

    def classify(self, headers, sample_text):
        self.calls.append((list(headers), sample_text))
        if self.error is not None:
            raise self.error
        return self.suggestion


@pytest.fixture()
def static_classifier():
    return StaticClassifier


@pytest.fixture()
def store() -> InMemoryTicketStore:
    s = InMemoryTicketStore()
    s.add_ticket_type("evt-1", "General Admission", 0)
    return s
