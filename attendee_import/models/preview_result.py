from __future__ import annotations

from dataclasses import dataclass, field

from .attendee import AttendeeRecord, ColumnRoles, SkippedRow

"""PreviewResult: the analysis-phase snapshot shown before anything is written."""

__all__ = [
    "PreviewResult",
]


@dataclass(frozen=True)
class PreviewResult:
    """Immutable result of the analysis phase.

    ``with_email_count + name_only_count + skipped_count <= total_rows``;
    fully blank rows are dropped before categorization and are not counted.
    """
    total_rows: int
    with_email_count: int
    name_only_count: int
    skipped_count: int
    attendees_with_email: list[AttendeeRecord] = field(default_factory=list)
    attendees_name_only: list[AttendeeRecord] = field(default_factory=list)
    skipped_rows: list[SkippedRow] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    column_roles: ColumnRoles = field(default_factory=ColumnRoles)

    @property
    def importable_count(self) -> int:
        return self.with_email_count + self.name_only_count
