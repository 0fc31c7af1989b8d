from __future__ import annotations

from dataclasses import dataclass, field

"""Attendee-side domain models.

ColumnRoles is the only mutable model: the reconciler copies it once per pass
and lets columns self-register while scanning rows.
"""

__all__ = [
    "UNKNOWN",
    "ColumnRoles",
    "AttendeeRecord",
    "SkippedRow",
]

UNKNOWN = -1


@dataclass
class ColumnRoles:
    """Header indices for the name / email / phone columns (-1 = unknown)."""
    name_index: int = UNKNOWN
    email_index: int = UNKNOWN
    phone_index: int = UNKNOWN

    def copy(self) -> ColumnRoles:
        return ColumnRoles(self.name_index, self.email_index, self.phone_index)

    def role_indices(self) -> set[int]:
        """Indices currently bound to a role (unknown roles excluded)."""
        return {
            i for i in (self.name_index, self.email_index, self.phone_index) if i != UNKNOWN
        }


@dataclass(frozen=True)
class AttendeeRecord:
    """One attendee extracted from an uploaded row.

    ``extra_fields`` carries every non-role column (header label -> cell value)
    and is later mapped onto custom form fields of the ticket type.
    """
    name: str
    email: str
    has_placeholder_email: bool
    phone: str | None = None
    extra_fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SkippedRow:
    row: int  # 1-based position among data rows
    reason: str
