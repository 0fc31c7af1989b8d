from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..models.attendee import UNKNOWN, AttendeeRecord, ColumnRoles, SkippedRow
from ..models.preview_result import PreviewResult

"""Row reconciler: data rows + column roles -> PreviewResult.

Pure: no I/O, no writes. Column roles are copied on entry and may
self-register while scanning: the first row whose email (or phone) is found
by pattern in an otherwise unclassified column makes that column the email
(or phone) column for every following row.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EMAIL_PATTERN",
    "PHONE_PATTERN",
    "SKIP_REASON_NO_NAME_OR_EMAIL",
    "reconcile_rows",
    "name_from_email",
]

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"(\+?\d{1,3})?(\(?\d{2,4}\)?)?[\d\s-]{6,}")
FIRST_NAME_HEADER = re.compile(r"first.*name|given.*name", re.IGNORECASE)
LAST_NAME_HEADER = re.compile(r"last.*name|surname|family.*name", re.IGNORECASE)
LETTER = re.compile(r"[^\W\d_]")

SKIP_REASON_NO_NAME_OR_EMAIL = "No name or email found"


def name_from_email(email: str) -> str:
    """``jane.doe-smith@x.com`` -> ``Jane Doe Smith``."""
    local = email.split("@", 1)[0]
    spaced = re.sub(r"[._-]+", " ", local).strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def _cell(cells: list[str], index: int) -> str:
    if index == UNKNOWN or index >= len(cells):
        return ""
    return cells[index]


def _find_header(headers: Sequence[str], pattern: re.Pattern[str]) -> int:
    for i, h in enumerate(headers):
        if pattern.search(h):
            return i
    return UNKNOWN


def _extract_email(value: str) -> str:
    match = EMAIL_PATTERN.search(value)
    return match.group(0) if match else ""


def _scan_email(cells: list[str]) -> tuple[str, int]:
    for i, cell in enumerate(cells):
        found = _extract_email(cell)
        if found:
            return found, i
    return "", UNKNOWN


def _scan_phone(cells: list[str], skip: set[int]) -> tuple[str, int]:
    for i, cell in enumerate(cells):
        if i in skip:
            continue
        for match in PHONE_PATTERN.finditer(cell):
            # [\d\s-]{6,} alone also matches a run of blanks
            if any(ch.isdigit() for ch in match.group(0)):
                return match.group(0).strip(), i
    return "", UNKNOWN


def _fallback_name(
    cells: list[str],
    roles: ColumnRoles,
    first_idx: int,
    last_idx: int,
    email: str,
) -> str:
    if first_idx != UNKNOWN and last_idx != UNKNOWN:
        joined = f"{_cell(cells, first_idx)} {_cell(cells, last_idx)}".strip()
        if joined:
            return joined
    excluded = {roles.email_index, roles.phone_index}
    for i, cell in enumerate(cells):
        if i in excluded or not cell:
            continue
        if email and cell == email:
            continue
        if LETTER.search(cell):
            return cell
    return ""


def reconcile_rows(
    headers: Sequence[str],
    roles: ColumnRoles,
    data_rows: Sequence[Sequence[str] | None],
) -> PreviewResult:
    """Categorize every data row into with-email / name-only / skipped.

    Row numbers reported for skipped rows are 1-based positions among the data
    rows (the header row is not counted).
    """
    roles = roles.copy()
    first_idx = _find_header(headers, FIRST_NAME_HEADER)
    last_idx = _find_header(headers, LAST_NAME_HEADER)

    with_email: list[AttendeeRecord] = []
    name_only: list[AttendeeRecord] = []
    skipped: list[SkippedRow] = []

    for pos, raw in enumerate(data_rows):
        if raw is None:
            continue
        cells = [(c or "").strip() for c in raw]
        if not any(cells):
            continue

        name = _cell(cells, roles.name_index)
        email = _extract_email(_cell(cells, roles.email_index))
        phone = _cell(cells, roles.phone_index)

        email_cell = roles.email_index
        if not email:
            email, found_at = _scan_email(cells)
            email_cell = found_at
            if email and roles.email_index == UNKNOWN:
                roles.email_index = found_at
                logger.debug("email column self-registered index=%d row=%d", found_at, pos + 1)

        if not phone:
            skip = {roles.email_index, email_cell, roles.name_index} - {UNKNOWN}
            phone, found_at = _scan_phone(cells, skip)
            if phone and roles.phone_index == UNKNOWN:
                roles.phone_index = found_at
                logger.debug("phone column self-registered index=%d row=%d", found_at, pos + 1)

        if not name:
            name = _fallback_name(cells, roles, first_idx, last_idx, email)

        if not name and not email:
            skipped.append(SkippedRow(row=pos + 1, reason=SKIP_REASON_NO_NAME_OR_EMAIL))
            continue
        if not name:
            name = name_from_email(email)

        role_cols = roles.role_indices()
        extra = {
            header: cells[i]
            for i, header in enumerate(headers)
            if i not in role_cols and i < len(cells) and cells[i]
        }
        record = AttendeeRecord(
            name=name,
            email=email,
            has_placeholder_email=not email,
            phone=phone or None,
            extra_fields=extra,
        )
        if email:
            with_email.append(record)
        else:
            name_only.append(record)

    logger.debug(
        "reconciled rows total=%d with_email=%d name_only=%d skipped=%d",
        len(data_rows),
        len(with_email),
        len(name_only),
        len(skipped),
    )
    return PreviewResult(
        total_rows=len(data_rows),
        with_email_count=len(with_email),
        name_only_count=len(name_only),
        skipped_count=len(skipped),
        attendees_with_email=with_email,
        attendees_name_only=name_only,
        skipped_rows=skipped,
        headers=list(headers),
        column_roles=roles,
    )
