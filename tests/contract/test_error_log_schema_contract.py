from __future__ import annotations

import json

from attendee_import.models.error_record import ErrorRecord

"""Error log line contract: exactly these keys, nothing else."""

EXPECTED_KEYS = {"timestamp", "file", "event_id", "row", "email", "error_type", "message"}


def test_error_record_json_keys():
    line = ErrorRecord.create(
        "attendees.xlsx", "evt-1", "BATCH_INSERT_ERROR", "duplicate key", email="ann@x.io"
    ).to_json_line()
    data = json.loads(line)
    assert set(data) == EXPECTED_KEYS
    assert data["row"] == -1
    assert data["error_type"].isupper()


def test_error_record_keeps_non_ascii():
    line = ErrorRecord.create("gäste.csv", "evt-1", "SKIPPED_ROW", "No name or email found", row=2).to_json_line()
    assert "gäste.csv" in line
