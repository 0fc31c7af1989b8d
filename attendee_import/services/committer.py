from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from typing import Any

from ..db.batch_insert import BatchMetrics
from ..db.store import FormResponseInsert, TicketInsert
from ..logging.error_log import ErrorLogBuffer
from ..models.attendee import AttendeeRecord, SkippedRow
from ..models.error_record import ErrorRecord
from ..models.config_models import DEFAULT_BATCH_SIZE
from ..models.import_outcome import ImportOutcome, ImportProgress, OutcomeAccumulator
from ..models.ticketing import FormFieldRef, TicketTypeRef
from .progress import BatchProgressTracker

"""Batch committer: the only side-effecting step of an import.

Flow for one confirmed attendee list:
1. resolve the ticket type (free one first, else any, else fatal)
2. drop attendees whose email already has a ticket for the event
3. provision missing custom form fields for extra columns
4. insert tickets in sequential fixed-size batches, each all-or-nothing,
   then best-effort form responses for the batch

Duplicate detection runs once, up front, against pre-commit state.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CommitError",
    "NoTicketTypeError",
    "PAYMENT_STATUS_COMPLETED",
    "resolve_ticket_type",
    "commit_attendees",
    "run_commit",
]

PAYMENT_STATUS_COMPLETED = "completed"
NO_TICKET_TYPE_MESSAGE = (
    "No ticket types configured for this event. Please create a ticket type first."
)


class CommitError(Exception):
    """Fatal commit error: nothing (further) is written."""


class NoTicketTypeError(CommitError):
    pass


def resolve_ticket_type(store: Any, event_id: str) -> TicketTypeRef:
    ticket_type = store.find_ticket_type(event_id, free_only=True)
    if ticket_type is None:
        ticket_type = store.find_ticket_type(event_id, free_only=False)
    if ticket_type is None:
        raise NoTicketTypeError(NO_TICKET_TYPE_MESSAGE)
    return ticket_type


def _qr_payload(attendee: AttendeeRecord) -> str:
    stamp = int(time.time() * 1000)
    return f"{attendee.name}|{attendee.email}|{stamp}|{uuid.uuid4().hex[:13]}"


def _extra_field_labels(attendees: Sequence[AttendeeRecord]) -> list[str]:
    """Union of extra-field keys, first-seen order, case-insensitive."""
    labels: dict[str, str] = {}
    for a in attendees:
        for key in a.extra_fields:
            labels.setdefault(key.lower(), key)
    return list(labels.values())


def _provision_form_fields(
    store: Any, ticket_type_id: str, labels: Sequence[str]
) -> dict[str, str]:
    """Return lowercase label -> form field id, creating fields that are missing."""
    existing: list[FormFieldRef] = store.form_fields(ticket_type_id)
    field_ids = {f.label.strip().lower(): f.id for f in existing}
    next_order = max((f.field_order for f in existing), default=-1) + 1
    for label in labels:
        key = label.strip().lower()
        if key in field_ids:
            continue
        created = store.create_form_field(ticket_type_id, label, next_order)
        logger.info("created form field label=%r id=%s", label, created.id)
        field_ids[key] = created.id
        next_order += 1
    return field_ids


def _chunks(items: Sequence[AttendeeRecord], size: int) -> list[Sequence[AttendeeRecord]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def commit_attendees(
    store: Any,
    event_id: str,
    attendees: Sequence[AttendeeRecord],
    skipped_rows: Sequence[SkippedRow],
    total_in_file: int,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress_callback: Callable[[ImportProgress], None] | None = None,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "",
) -> ImportOutcome:
    """Create tickets for ``attendees`` and account for every one of them.

    Each attendee ends up in exactly one of: a successful batch, a failed
    batch, or the duplicates.

    Raises:
        NoTicketTypeError: the event has no ticket type at all.
        StoreError: a lookup needed before the first batch failed.
    """
    if batch_size < 1:
        raise CommitError(f"batch_size must be positive, got {batch_size}")

    acc = OutcomeAccumulator(
        total_processed=len(attendees),
        total_in_file=total_in_file,
        skipped_rows=list(skipped_rows),
    )

    def _log(error_type: str, message: str, email: str = "") -> None:
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(file_name, event_id, error_type, message, email=email)
            )

    ticket_type = resolve_ticket_type(store, event_id)
    logger.info(
        "ticket type resolved id=%s name=%r price=%s", ticket_type.id, ticket_type.name,
        ticket_type.price,
    )

    existing = store.existing_guest_emails(event_id, [a.email for a in attendees])
    new_attendees: list[AttendeeRecord] = []
    for a in attendees:
        if a.email.lower() in existing:
            acc.record_duplicate(a.email)
            _log("DUPLICATE_ATTENDEE", "Already exists in event", a.email)
        else:
            new_attendees.append(a)
    logger.info(
        "duplicate check submitted=%d new=%d duplicates=%d",
        len(attendees), len(new_attendees), acc.duplicate_count,
    )

    if not new_attendees:
        return acc.to_outcome()

    field_ids = _provision_form_fields(store, ticket_type.id, _extra_field_labels(attendees))

    def _metrics(m: BatchMetrics) -> None:
        acc.batch_stats.add_batch_time(m.elapsed_seconds)

    batches = _chunks(new_attendees, batch_size)
    with BatchProgressTracker(len(new_attendees)) as progress:
        for number, batch in enumerate(batches, start=1):
            tickets = [
                TicketInsert(
                    event_id=event_id,
                    ticket_type_id=ticket_type.id,
                    guest_name=a.name,
                    guest_email=a.email,
                    guest_phone=a.phone or None,
                    price=ticket_type.price,
                    payment_status=PAYMENT_STATUS_COMPLETED,
                    qr_code_data=_qr_payload(a),
                )
                for a in batch
            ]
            try:
                with store.transaction():
                    ticket_ids = store.insert_tickets(tickets, metrics_callback=_metrics)
            except Exception as e:
                message = str(e) or None
                logger.error(
                    "batch %d/%d failed size=%d: %s", number, len(batches), len(batch), message
                )
                acc.record_batch_failure([a.email for a in batch], message)
                for a in batch:
                    _log("BATCH_INSERT_ERROR", message or "Unknown error", a.email)
                snapshot = progress.advance(len(batch))
            else:
                acc.record_success(len(ticket_ids))
                snapshot = progress.advance(len(batch))
                logger.info(
                    "batch %d/%d inserted=%d progress=%d%%",
                    number, len(batches), len(ticket_ids), snapshot.percentage,
                )
                _insert_form_responses(store, batch, tickets, ticket_ids, field_ids, _log)
            progress.set_postfix(success=acc.success_count, failed=acc.error_count)
            if progress_callback is not None:
                progress_callback(snapshot)

    return acc.to_outcome()


def _insert_form_responses(
    store: Any,
    batch: Sequence[AttendeeRecord],
    tickets: Sequence[TicketInsert],
    ticket_ids: dict[str, str],
    field_ids: dict[str, str],
    log: Callable[..., None],
) -> None:
    """Best effort: failures are logged, never counted, never roll back tickets."""
    responses: list[FormResponseInsert] = []
    for attendee, ticket in zip(batch, tickets, strict=True):
        ticket_id = ticket_ids.get(ticket.qr_code_data)
        if ticket_id is None:
            continue
        for label, value in attendee.extra_fields.items():
            field_id = field_ids.get(label.strip().lower())
            if value and field_id:
                responses.append(FormResponseInsert(ticket_id, field_id, value))
    if not responses:
        return
    try:
        with store.transaction():
            store.insert_form_responses(responses)
    except Exception as e:
        logger.warning("form responses not saved count=%d: %s", len(responses), e)
        log("FORM_RESPONSE_ERROR", str(e) or "Unknown error")


def run_commit(
    store: Any,
    event_id: str | None,
    attendees: Sequence[AttendeeRecord],
    skipped_rows: Sequence[SkippedRow],
    total_in_file: int,
    **kwargs: Any,
) -> ImportOutcome:
    """commit_attendees with fatal errors folded into the outcome shape."""
    if not event_id:
        return ImportOutcome.failure(
            "No event selected", skipped_rows=list(skipped_rows), total_in_file=total_in_file
        )
    try:
        return commit_attendees(
            store, event_id, attendees, skipped_rows, total_in_file, **kwargs
        )
    except Exception as e:
        logger.error("import failed: %s", e)
        error_log = kwargs.get("error_log")
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(kwargs.get("file_name", ""), event_id, "COMMIT_ERROR", str(e))
            )
        return ImportOutcome.failure(
            str(e) or "Unknown error",
            skipped_rows=list(skipped_rows),
            total_in_file=total_in_file,
        )
