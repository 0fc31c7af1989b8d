from __future__ import annotations

import re
import time
from dataclasses import replace

from ..models.attendee import AttendeeRecord
from ..models.config_models import DEFAULT_PLACEHOLDER_DOMAIN
from ..models.preview_result import PreviewResult

"""Attendee list finalization (the include-name-only toggle).

Name-only attendees get a synthesized email so every ticket has one:
``<slug>_<epochMillis>_<index>@import.local``, where index is the attendee's
position in the name-only bucket. Two "John Smith" rows therefore differ
only in their index suffix.
"""

__all__ = [
    "placeholder_email",
    "finalize_attendees",
]

_NON_SLUG = re.compile(r"[^a-z\s]")
_SPACES = re.compile(r"\s+")


def _slug(name: str) -> str:
    return ".".join(_SPACES.split(_NON_SLUG.sub("", name.lower()).strip())).strip(".")


def placeholder_email(
    name: str, epoch_ms: int, index: int, domain: str = DEFAULT_PLACEHOLDER_DOMAIN
) -> str:
    return f"{_slug(name)}_{epoch_ms}_{index}@{domain}"


def finalize_attendees(
    preview: PreviewResult,
    include_name_only: bool,
    *,
    now_ms: int | None = None,
    domain: str = DEFAULT_PLACEHOLDER_DOMAIN,
) -> list[AttendeeRecord]:
    """Build the attendee list handed to the committer."""
    attendees = list(preview.attendees_with_email)
    if not include_name_only:
        return attendees
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    for index, record in enumerate(preview.attendees_name_only):
        attendees.append(
            replace(
                record,
                email=placeholder_email(record.name, stamp, index, domain),
                has_placeholder_email=True,
            )
        )
    return attendees
