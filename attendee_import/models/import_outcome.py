from __future__ import annotations

import statistics
from dataclasses import dataclass, field

from .attendee import SkippedRow

"""Commit-phase result models.

ImportOutcome is the terminal state shown to the user. It is built by
OutcomeAccumulator, whose counters only ever grow during a commit.
Fatal errors use the same shape via ImportOutcome.failure().
"""

__all__ = [
    "RowError",
    "ImportOutcome",
    "ImportProgress",
    "OutcomeAccumulator",
    "BatchStatsAccumulator",
    "DUPLICATE_REASON",
    "UNKNOWN_ERROR",
]

DUPLICATE_REASON = "Already exists in event"
UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class RowError:
    email: str
    reason: str


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregated outcome of one commit (or of a fatal failure)."""
    success_count: int
    error_count: int
    duplicate_count: int
    skipped_count: int
    errors: list[RowError] = field(default_factory=list)
    skipped_rows: list[SkippedRow] = field(default_factory=list)
    total_processed: int = 0  # attendees submitted to the commit
    total_in_file: int = 0  # data rows in the uploaded file
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    fatal: bool = False  # built by failure(); no commit work was done

    @staticmethod
    def failure(
        message: str,
        *,
        skipped_rows: list[SkippedRow] | None = None,
        total_in_file: int = 0,
    ) -> ImportOutcome:
        skipped = list(skipped_rows or [])
        return ImportOutcome(
            success_count=0,
            error_count=1,
            duplicate_count=0,
            skipped_count=len(skipped),
            errors=[RowError(email="", reason=message)],
            skipped_rows=skipped,
            total_processed=0,
            total_in_file=total_in_file,
            fatal=True,
        )


@dataclass(frozen=True)
class ImportProgress:
    """Progress snapshot emitted after each committed batch."""
    current: int
    total: int
    percentage: int


class BatchStatsAccumulator:
    """Accumulates per-batch insert timings."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)


class OutcomeAccumulator:
    """Mutable counters for a commit in progress."""

    def __init__(
        self,
        total_processed: int,
        total_in_file: int,
        skipped_rows: list[SkippedRow] | None = None,
    ) -> None:
        self.total_processed = total_processed
        self.total_in_file = total_in_file
        self.skipped_rows = list(skipped_rows or [])
        self.success_count = 0
        self.error_count = 0
        self.duplicate_count = 0
        self.errors: list[RowError] = []
        self.batch_stats = BatchStatsAccumulator()

    def record_duplicate(self, email: str) -> None:
        self.duplicate_count += 1
        self.errors.append(RowError(email=email, reason=DUPLICATE_REASON))

    def record_batch_failure(self, emails: list[str], message: str | None) -> None:
        reason = message or UNKNOWN_ERROR
        self.error_count += len(emails)
        self.errors.extend(RowError(email=e, reason=reason) for e in emails)

    def record_success(self, inserted: int) -> None:
        self.success_count += inserted

    def to_outcome(self) -> ImportOutcome:
        total_batches, avg_batch_seconds, p95_batch_seconds = self.batch_stats.get_stats()
        return ImportOutcome(
            success_count=self.success_count,
            error_count=self.error_count,
            duplicate_count=self.duplicate_count,
            skipped_count=len(self.skipped_rows),
            errors=list(self.errors),
            skipped_rows=list(self.skipped_rows),
            total_processed=self.total_processed,
            total_in_file=self.total_in_file,
            total_batches=total_batches,
            avg_batch_seconds=avg_batch_seconds,
            p95_batch_seconds=p95_batch_seconds,
        )
