from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..analysis.classifier import ClassificationError
from ..analysis.pipeline import analyze_file
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import ErrorRecord
from ..models.import_outcome import ImportOutcome, ImportProgress
from ..models.preview_result import PreviewResult
from ..tabular.reader import TabularDecodeError
from .committer import run_commit
from .placeholders import finalize_attendees

"""Two-phase import session: analyze (preview, no writes) then commit.

One session serves one upload for one event. While a phase is running the
session is busy and rejects further calls; this is a simple flag, not a
cancellation mechanism.
"""

logger = logging.getLogger(__name__)

NO_EVENT_MESSAGE = "No event selected"
NO_PREVIEW_MESSAGE = "Nothing to import: analyze a file first"


class ImportBusyError(Exception):
    """Raised when a phase is started while another one is still running."""


class ImportSession:
    def __init__(
        self,
        event_id: str | None,
        classifier: Any,
        store: Any,
        config: ImportConfig | None = None,
        *,
        error_log: ErrorLogBuffer | None = None,
        progress_callback: Callable[[ImportProgress], None] | None = None,
    ) -> None:
        self.event_id = event_id
        self.classifier = classifier
        self.store = store
        self.config = config or ImportConfig()
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.progress_callback = progress_callback
        self.preview: PreviewResult | None = None
        self.file_name = ""
        self.busy = False

    @contextmanager
    def _busy(self) -> Iterator[None]:
        if self.busy:
            raise ImportBusyError("an import step is already running")
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def _fail(self, error_type: str, message: str) -> ImportOutcome:
        self.error_log.append(
            ErrorRecord.create(self.file_name, self.event_id or "", error_type, message)
        )
        return ImportOutcome.failure(message)

    def analyze(self, path: Path) -> PreviewResult | ImportOutcome:
        """Build the preview for ``path``; fatal errors come back as an outcome."""
        with self._busy():
            self.preview = None
            self.file_name = path.name
            if not self.event_id:
                return self._fail("CONFIG_ERROR", NO_EVENT_MESSAGE)
            try:
                preview = analyze_file(path, self.classifier, self.config.sample_row_limit)
            except TabularDecodeError as e:
                logger.error("parse failed file=%s: %s", path.name, e)
                return self._fail("PARSE_ERROR", str(e))
            except ClassificationError as e:
                logger.error("column classification failed file=%s: %s", path.name, e)
                return self._fail("CLASSIFICATION_ERROR", str(e))
            for s in preview.skipped_rows:
                self.error_log.append(
                    ErrorRecord.create(
                        self.file_name, self.event_id, "SKIPPED_ROW", s.reason, row=s.row
                    )
                )
            self.preview = preview
            return preview

    def commit(self, include_name_only: bool = False) -> ImportOutcome:
        """Write the previewed attendees; consumes the preview."""
        with self._busy():
            if self.preview is None:
                return self._fail("CONFIG_ERROR", NO_PREVIEW_MESSAGE)
            preview, self.preview = self.preview, None
            attendees = finalize_attendees(
                preview, include_name_only, domain=self.config.placeholder_domain
            )
            logger.info(
                "committing event=%s attendees=%d include_name_only=%s",
                self.event_id, len(attendees), include_name_only,
            )
            return run_commit(
                self.store,
                self.event_id,
                attendees,
                preview.skipped_rows,
                preview.total_rows,
                batch_size=self.config.batch_size,
                progress_callback=self.progress_callback,
                error_log=self.error_log,
                file_name=self.file_name,
            )

    def reset(self) -> None:
        """Discard the preview (dialog closed)."""
        self.preview = None
        self.file_name = ""
