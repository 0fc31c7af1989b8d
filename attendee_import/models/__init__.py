"""Domain models for the attendee bulk-import tool.

This package contains the domain model classes shared by the analysis phase
(preview) and the commit phase (outcome).
"""

from .attendee import UNKNOWN, AttendeeRecord, ColumnRoles, SkippedRow
from .config_models import ClassifierConfig, DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .import_outcome import (
    DUPLICATE_REASON,
    ImportOutcome,
    ImportProgress,
    OutcomeAccumulator,
    RowError,
)
from .preview_result import PreviewResult
from .ticketing import FormFieldRef, TicketTypeRef

__all__ = [
    # Configuration models
    "ClassifierConfig",
    "DatabaseConfig",
    "ImportConfig",
    # Analysis models
    "UNKNOWN",
    "AttendeeRecord",
    "ColumnRoles",
    "SkippedRow",
    "PreviewResult",
    # Commit models
    "DUPLICATE_REASON",
    "ErrorRecord",
    "ImportOutcome",
    "ImportProgress",
    "OutcomeAccumulator",
    "RowError",
    "FormFieldRef",
    "TicketTypeRef",
]
