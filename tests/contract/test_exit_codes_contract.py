from __future__ import annotations

from pathlib import Path

import pytest

from attendee_import.cli.__main__ import main as cli_main
from attendee_import.db.store import InMemoryTicketStore

"""Exit code contract: 0 success, 2 partial failure, 1 fatal."""

GOOD_CSV = "Full Name,Email Address\nAnn Lee,ann@x.io\nBob Roe,bob@x.io\n"


@pytest.fixture(autouse=True)
def _offline(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    monkeypatch.delenv("IMPORT_EVENT_ID", raising=False)


def _upload(workdir: Path, name: str = "attendees.csv", text: str = GOOD_CSV) -> Path:
    p = workdir / "data" / name
    p.write_text(text, encoding="utf-8")
    return p


def test_exit_code_fatal_without_config(temp_workdir: Path, capsys):
    code = cli_main([str(_upload(temp_workdir)), "--yes"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_all_success(write_config, temp_workdir: Path):
    assert cli_main([str(_upload(temp_workdir)), "--yes"]) == 0


def test_exit_code_partial_failure(write_config, temp_workdir: Path, monkeypatch):
    def failing_insert(self, tickets, metrics_callback=None):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(InMemoryTicketStore, "insert_tickets", failing_insert)
    assert cli_main([str(_upload(temp_workdir)), "--yes"]) == 2


def test_exit_code_fatal_on_unreadable_file(write_config, temp_workdir: Path):
    assert cli_main([str(_upload(temp_workdir, "attendees.pdf")), "--yes"]) == 1


def test_exit_code_fatal_without_event(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("classifier:\n  mode: headers\n", encoding="utf-8")
    code = cli_main([str(_upload(temp_workdir)), "--yes"])
    assert code == 1
    assert "No event selected" in capsys.readouterr().out


def test_exit_code_fatal_on_missing_file(write_config, temp_workdir: Path, capsys):
    code = cli_main([str(temp_workdir / "data" / "nope.csv"), "--yes"])
    assert code == 1
    assert "file not found" in capsys.readouterr().out


def test_exit_code_fatal_on_oversized_field(write_config, temp_workdir: Path):
    text = "Full Name,Email Address,Notes\nAnn Lee,ann@x.io," + "x" * 200_000 + "\n"
    assert cli_main([str(_upload(temp_workdir, text=text)), "--yes"]) == 1
