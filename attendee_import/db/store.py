from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..models.ticketing import FormFieldRef, TicketTypeRef
from .batch_insert import BatchInsertError, BatchMetrics, batch_insert

"""Ticket persistence layer.

Two interchangeable stores expose the table operations the committer needs:

- PostgresTicketStore: psycopg2 cursor on an autocommit connection; each
  transaction() is an explicit BEGIN/COMMIT (ROLLBACK on error).
- InMemoryTicketStore: dict-backed, used for dry runs and tests.
"""

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import Json
except Exception:  # pragma: no cover
    Json = None  # type: ignore

__all__ = [
    "StoreError",
    "TicketInsert",
    "FormResponseInsert",
    "PostgresTicketStore",
    "InMemoryTicketStore",
    "TICKET_COLUMNS",
]

TICKET_TYPES_TABLE = "ticket_types"
TICKETS_TABLE = "event_tickets"
FORM_FIELDS_TABLE = "ticket_form_fields"
FORM_RESPONSES_TABLE = "ticket_form_responses"

TICKET_COLUMNS = (
    "event_id",
    "ticket_type_id",
    "guest_name",
    "guest_email",
    "guest_phone",
    "price",
    "payment_status",
    "qr_code_data",
    "ticket_number",
)


class StoreError(Exception):
    """Raised when a lookup or write against the ticket tables fails."""


@dataclass(frozen=True)
class TicketInsert:
    event_id: str
    ticket_type_id: str
    guest_name: str
    guest_email: str
    guest_phone: str | None
    price: Decimal
    payment_status: str
    qr_code_data: str
    ticket_number: str = ""  # assigned by a backend trigger

    def as_row(self) -> tuple[Any, ...]:
        return tuple(getattr(self, c) for c in TICKET_COLUMNS)


@dataclass(frozen=True)
class FormResponseInsert:
    ticket_id: str
    form_field_id: str
    response_value: str


class PostgresTicketStore:
    """Ticket tables accessed through a psycopg2 cursor."""

    def __init__(self, cursor: Any, *, page_size: int = 1000) -> None:
        self.cursor = cursor
        self.page_size = page_size

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.cursor.execute("BEGIN")
        try:
            yield
        except Exception:
            try:
                self.cursor.execute("ROLLBACK")
            except Exception as rollback_e:
                logger.error("rollback failed: %s", rollback_e)
            raise
        else:
            self.cursor.execute("COMMIT")

    def _fetch(self, sql: str, params: Sequence[Any]) -> list[tuple[Any, ...]]:
        try:
            self.cursor.execute(sql, params)
            return list(self.cursor.fetchall())
        except Exception as e:
            raise StoreError(str(e)) from e

    def find_ticket_type(self, event_id: str, *, free_only: bool) -> TicketTypeRef | None:
        sql = f"SELECT id, name, price FROM {TICKET_TYPES_TABLE} WHERE event_id = %s"
        if free_only:
            sql += " AND price = 0"
        sql += " ORDER BY created_at LIMIT 1"
        rows = self._fetch(sql, (event_id,))
        if not rows:
            return None
        tid, name, price = rows[0]
        return TicketTypeRef(id=str(tid), name=name, price=Decimal(str(price)))

    def existing_guest_emails(self, event_id: str, emails: Iterable[str]) -> set[str]:
        wanted = sorted({e.lower() for e in emails if e})
        if not wanted:
            return set()
        rows = self._fetch(
            f"SELECT guest_email FROM {TICKETS_TABLE} "
            "WHERE event_id = %s AND lower(guest_email) = ANY(%s)",
            (event_id, wanted),
        )
        return {r[0].lower() for r in rows if r[0]}

    def form_fields(self, ticket_type_id: str) -> list[FormFieldRef]:
        rows = self._fetch(
            f"SELECT id, label, field_order FROM {FORM_FIELDS_TABLE} "
            "WHERE ticket_type_id = %s ORDER BY field_order",
            (ticket_type_id,),
        )
        return [FormFieldRef(id=str(r[0]), label=r[1], field_order=r[2] or 0) for r in rows]

    def create_form_field(self, ticket_type_id: str, label: str, field_order: int) -> FormFieldRef:
        rows = self._fetch(
            f"INSERT INTO {FORM_FIELDS_TABLE} "
            "(ticket_type_id, label, field_type, field_order, is_required) "
            "VALUES (%s, %s, 'text', %s, false) RETURNING id",
            (ticket_type_id, label, field_order),
        )
        return FormFieldRef(id=str(rows[0][0]), label=label, field_order=field_order)

    def insert_tickets(
        self,
        tickets: Sequence[TicketInsert],
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> dict[str, str]:
        """Insert one batch; returns qr_code_data -> new ticket id."""
        result = batch_insert(
            self.cursor,
            TICKETS_TABLE,
            TICKET_COLUMNS,
            [t.as_row() for t in tickets],
            returning=("id", "qr_code_data"),
            page_size=self.page_size,
            metrics_callback=metrics_callback,
        )
        return {qr: str(tid) for tid, qr in (result.returned_values or [])}

    def insert_form_responses(self, responses: Sequence[FormResponseInsert]) -> int:
        if Json is None:
            raise BatchInsertError("psycopg2 not available")
        result = batch_insert(
            self.cursor,
            FORM_RESPONSES_TABLE,
            ("ticket_id", "form_field_id", "response_value"),
            [(r.ticket_id, r.form_field_id, Json(r.response_value)) for r in responses],
            page_size=self.page_size,
        )
        return result.inserted_rows


class InMemoryTicketStore:
    """Dict-backed store with the PostgresTicketStore interface.

    Writes inside a failed transaction() are discarded, mirroring ROLLBACK.
    """

    def __init__(self) -> None:
        self.ticket_types: list[dict[str, Any]] = []
        self.tickets: list[dict[str, Any]] = []
        self.form_fields_by_type: dict[str, list[FormFieldRef]] = {}
        self.form_responses: list[FormResponseInsert] = []
        self._ids = itertools.count(1)
        self._pending: list[tuple[str, Any]] | None = None

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_ticket_type(self, event_id: str, name: str, price: Decimal | int | str = 0) -> TicketTypeRef:
        ref = TicketTypeRef(id=self._next_id("tt"), name=name, price=Decimal(str(price)))
        self.ticket_types.append({"event_id": event_id, "ref": ref})
        return ref

    def add_ticket(self, event_id: str, guest_email: str, guest_name: str = "") -> None:
        self.tickets.append(
            {"id": self._next_id("t"), "event_id": event_id, "guest_email": guest_email,
             "guest_name": guest_name}
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._pending = []
        try:
            yield
        except Exception:
            self._pending = None
            raise
        pending, self._pending = self._pending, None
        for kind, item in pending:
            if kind == "ticket":
                self.tickets.append(item)
            else:
                self.form_responses.append(item)

    def _write(self, kind: str, item: Any) -> None:
        if self._pending is not None:
            self._pending.append((kind, item))
        elif kind == "ticket":
            self.tickets.append(item)
        else:
            self.form_responses.append(item)

    def find_ticket_type(self, event_id: str, *, free_only: bool) -> TicketTypeRef | None:
        for entry in self.ticket_types:
            if entry["event_id"] != event_id:
                continue
            if free_only and entry["ref"].price != 0:
                continue
            return entry["ref"]
        return None

    def existing_guest_emails(self, event_id: str, emails: Iterable[str]) -> set[str]:
        wanted = {e.lower() for e in emails if e}
        return {
            t["guest_email"].lower()
            for t in self.tickets
            if t["event_id"] == event_id and t["guest_email"] and t["guest_email"].lower() in wanted
        }

    def form_fields(self, ticket_type_id: str) -> list[FormFieldRef]:
        return list(self.form_fields_by_type.get(ticket_type_id, []))

    def create_form_field(self, ticket_type_id: str, label: str, field_order: int) -> FormFieldRef:
        ref = FormFieldRef(id=self._next_id("ff"), label=label, field_order=field_order)
        self.form_fields_by_type.setdefault(ticket_type_id, []).append(ref)
        return ref

    def insert_tickets(
        self,
        tickets: Sequence[TicketInsert],
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> dict[str, str]:
        start_time = time.time()
        ids: dict[str, str] = {}
        for t in tickets:
            row = dict(zip(TICKET_COLUMNS, t.as_row(), strict=True))
            row["id"] = self._next_id("t")
            self._write("ticket", row)
            ids[t.qr_code_data] = row["id"]
        if metrics_callback is not None and tickets:
            end_time = time.time()
            metrics_callback(
                BatchMetrics(
                    batch_size=len(tickets),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )
        return ids

    def insert_form_responses(self, responses: Sequence[FormResponseInsert]) -> int:
        for r in responses:
            self._write("response", r)
        return len(responses)
