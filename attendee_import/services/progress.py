from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_outcome import ImportProgress

"""Progress display service with tqdm (TTY only).

The commit phase advances the tracker once per batch, so the counter only
ever increases. In non-TTY environments (CI, piped output) no bar is drawn
but ImportProgress snapshots are still produced.
"""

__all__ = [
    "BatchProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class BatchProgressTracker:
    """Attendee-level progress over sequential commit batches."""

    def __init__(self, total: int, *, description: str = "Importing attendees") -> None:
        self.total = total
        self.description = description
        self.current = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="attendee",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def snapshot(self) -> ImportProgress:
        percentage = round(self.current * 100 / self.total) if self.total else 100
        return ImportProgress(current=self.current, total=self.total, percentage=percentage)

    def advance(self, count: int) -> ImportProgress:
        """Mark ``count`` more attendees as processed and return the new snapshot."""
        count = max(0, min(count, self.total - self.current))
        self.current += count
        if self.enabled and self.pbar is not None:
            self.pbar.update(count)
        return self.snapshot()

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> BatchProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
