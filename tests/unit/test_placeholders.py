from __future__ import annotations

import re

from attendee_import.models.attendee import AttendeeRecord
from attendee_import.models.preview_result import PreviewResult
from attendee_import.services.placeholders import finalize_attendees, placeholder_email

PLACEHOLDER_RE = re.compile(r"^[a-z.]*_\d+_\d+@import\.local$")


def _preview(with_email, name_only) -> PreviewResult:
    return PreviewResult(
        total_rows=len(with_email) + len(name_only),
        with_email_count=len(with_email),
        name_only_count=len(name_only),
        skipped_count=0,
        attendees_with_email=with_email,
        attendees_name_only=name_only,
    )


def _name_only(name: str) -> AttendeeRecord:
    return AttendeeRecord(name=name, email="", has_placeholder_email=True)


def test_placeholder_email_slug():
    assert placeholder_email("Mary-Jane  O'Neil", 1700000000000, 3) == "maryjane.oneil_1700000000000_3@import.local"


def test_placeholder_email_custom_domain():
    assert placeholder_email("Ann", 1, 0, domain="example.test") == "ann_1_0@example.test"


def test_scenario_d_same_names_get_distinct_placeholders():
    preview = _preview([], [_name_only("John Smith"), _name_only("John Smith")])
    attendees = finalize_attendees(preview, include_name_only=True, now_ms=1700000000000)

    emails = [a.email for a in attendees]
    assert emails == [
        "john.smith_1700000000000_0@import.local",
        "john.smith_1700000000000_1@import.local",
    ]
    assert all(PLACEHOLDER_RE.match(e) for e in emails)
    assert all(a.has_placeholder_email for a in attendees)


def test_name_only_attendees_excluded_by_default():
    real = AttendeeRecord(name="Ann", email="ann@x.io", has_placeholder_email=False)
    preview = _preview([real], [_name_only("Bob")])
    assert finalize_attendees(preview, include_name_only=False) == [real]


def test_with_email_attendees_come_first_and_unchanged():
    real = AttendeeRecord(name="Ann", email="ann@x.io", has_placeholder_email=False, extra_fields={"Company": "Acme"})
    bob = AttendeeRecord(name="Bob 2nd", email="", has_placeholder_email=True, phone="555 1234", extra_fields={"Diet": "Vegan"})
    attendees = finalize_attendees(_preview([real], [bob]), include_name_only=True)

    assert attendees[0] is real
    assert PLACEHOLDER_RE.match(attendees[1].email)
    assert attendees[1].email.startswith("bob.nd_")
    assert attendees[1].phone == "555 1234"
    assert attendees[1].extra_fields == {"Diet": "Vegan"}
