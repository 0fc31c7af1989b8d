from __future__ import annotations

from ..models.attendee import UNKNOWN
from ..models.import_outcome import ImportOutcome
from ..models.preview_result import PreviewResult

"""Rendering of the preview block and the SUMMARY line."""

MAX_LISTED_ERRORS = 20


def _fmt_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_fields(outcome: ImportOutcome) -> str:
    """Key=value part of the SUMMARY line (what log_summary receives)."""
    return (
        f"rows={outcome.total_in_file} "
        f"processed={outcome.total_processed} "
        f"success={outcome.success_count} "
        f"errors={outcome.error_count} "
        f"duplicates={outcome.duplicate_count} "
        f"skipped={outcome.skipped_count} "
        f"batches={outcome.total_batches} "
        f"avg_batch_sec={_fmt_seconds(outcome.avg_batch_seconds)} "
        f"p95_batch_sec={_fmt_seconds(outcome.p95_batch_seconds)}"
    )


def render_summary_line(outcome: ImportOutcome) -> str:
    """Render the SUMMARY line for an import outcome.

    Format:
    SUMMARY rows={total_in_file} processed={n} success={n} errors={n}
    duplicates={n} skipped={n} batches={n} avg_batch_sec={s} p95_batch_sec={s}

    Examples:
        >>> from attendee_import.models.import_outcome import ImportOutcome
        >>> render_summary_line(ImportOutcome(
        ...     success_count=3, error_count=0, duplicate_count=1, skipped_count=0,
        ...     total_processed=4, total_in_file=5))
        'SUMMARY rows=5 processed=4 success=3 errors=0 duplicates=1 skipped=0 batches=0 avg_batch_sec=0 p95_batch_sec=0'
    """
    return f"SUMMARY {render_summary_fields(outcome)}"


def render_error_lines(outcome: ImportOutcome, limit: int = MAX_LISTED_ERRORS) -> list[str]:
    lines = [f"  {e.email or '-'}: {e.reason}" for e in outcome.errors[:limit]]
    if len(outcome.errors) > limit:
        lines.append(f"  ... {len(outcome.errors) - limit} more")
    return lines


def _role_label(preview: PreviewResult, index: int) -> str:
    if index == UNKNOWN or index >= len(preview.headers):
        return "(not detected)"
    return preview.headers[index]


def render_preview_lines(preview: PreviewResult) -> list[str]:
    """Human-readable preview shown before the user confirms the import."""
    roles = preview.column_roles
    lines = [
        f"Rows in file: {preview.total_rows}",
        f"  name column:  {_role_label(preview, roles.name_index)}",
        f"  email column: {_role_label(preview, roles.email_index)}",
        f"  phone column: {_role_label(preview, roles.phone_index)}",
        f"With email: {preview.with_email_count}",
        f"Name only (no email): {preview.name_only_count}",
        f"Skipped: {preview.skipped_count}",
    ]
    for s in preview.skipped_rows[:MAX_LISTED_ERRORS]:
        lines.append(f"  row {s.row}: {s.reason}")
    if preview.skipped_count > MAX_LISTED_ERRORS:
        lines.append(f"  ... {preview.skipped_count - MAX_LISTED_ERRORS} more")
    return lines
