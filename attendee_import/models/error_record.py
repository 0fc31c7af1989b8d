from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for structured error logging.

Supports row=-1 as a sentinel value for file-level or batch-level errors where
the specific row cannot be determined.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded filename being imported
        event_id: Target event identifier ("" when not selected)
        row: Data-row number (1-based). Use -1 when the row is unknown
        email: Attendee email the error refers to ("" when not applicable)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Backend error message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    event_id: str
    row: int
    email: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str,
        event_id: str,
        error_type: str,
        message: str,
        *,
        row: int = -1,
        email: str = "",
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            event_id=event_id,
            row=row,
            email=email,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to JSON Lines format (no keys beyond the dataclass fields)."""
        return json.dumps(asdict(self), ensure_ascii=False)
