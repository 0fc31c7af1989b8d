from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

"""References to backend-owned ticketing entities (ticket types, form fields)."""

__all__ = [
    "TicketTypeRef",
    "FormFieldRef",
]


@dataclass(frozen=True)
class TicketTypeRef:
    id: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class FormFieldRef:
    id: str
    label: str
    field_order: int = 0
