from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from attendee_import.analysis.classifier import (
    ClassificationError,
    ColumnSuggestion,
    HeaderKeywordClassifier,
    HttpColumnClassifier,
    build_classifier,
    build_sample_text,
    classify_columns,
    resolve_column_roles,
)
from attendee_import.models.attendee import UNKNOWN
from attendee_import.models.config_models import ClassifierConfig


def _response(body, status_ok=True):
    resp = MagicMock()
    resp.json.return_value = body
    if not status_ok:
        resp.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    return resp


def test_sample_text_joins_cells_and_caps_rows():
    rows = [[f"n{i}", f"e{i}"] for i in range(150)]
    text = build_sample_text(rows, limit=100)
    lines = text.split("\n")
    assert len(lines) == 100
    assert lines[0] == "n0,e0"
    assert lines[-1] == "n99,e99"


def test_resolve_roles_is_case_insensitive_exact_match():
    headers = ["Full Name", "E-mail", "Mobile"]
    roles = resolve_column_roles(headers, ColumnSuggestion("full name", "E-MAIL", "mob"))
    assert roles.name_index == 0
    assert roles.email_index == 1
    assert roles.phone_index == UNKNOWN


def test_resolve_roles_treats_null_labels_as_absent():
    headers = ["null", "Email"]
    roles = resolve_column_roles(headers, ColumnSuggestion(None, "Email", "null"))
    assert roles.name_index == UNKNOWN
    assert roles.phone_index == UNKNOWN
    assert roles.email_index == 1


def test_http_classifier_posts_headers_and_sample():
    body = {
        "success": True,
        "mapping": {"nameColumn": "Name", "emailColumn": "Email", "phoneColumn": None},
    }
    with patch("attendee_import.analysis.classifier.requests.post", return_value=_response(body)) as post:
        client = HttpColumnClassifier("https://example.test/classify", api_key="k", timeout_seconds=5)
        suggestion = client.classify(["Name", "Email"], "Ann,ann@x.io")

    assert suggestion == ColumnSuggestion("Name", "Email", None)
    _, kwargs = post.call_args
    assert kwargs["json"] == {"csvHeaders": ["Name", "Email"], "sampleRows": "Ann,ann@x.io"}
    assert kwargs["headers"]["Authorization"] == "Bearer k"
    assert kwargs["timeout"] == 5


def test_http_classifier_uses_session_when_given():
    session = MagicMock()
    session.post.return_value = _response({"success": True, "mapping": {}})
    suggestion = HttpColumnClassifier("https://example.test", session=session).classify(["A"], "")
    assert suggestion == ColumnSuggestion()
    session.post.assert_called_once()


@pytest.mark.parametrize(
    "response, match",
    [
        (_response({"success": False, "error": "quota exceeded"}), "quota exceeded"),
        (_response({"success": True}), "no mapping"),
        (_response(["not", "a", "dict"]), "reported failure"),
        (_response({}, status_ok=False), "request failed"),
    ],
)
def test_http_classifier_failures_raise(response, match):
    with patch("attendee_import.analysis.classifier.requests.post", return_value=response):
        with pytest.raises(ClassificationError, match=match):
            HttpColumnClassifier("https://example.test").classify(["A"], "")


def test_http_classifier_timeout_raises():
    with patch(
        "attendee_import.analysis.classifier.requests.post",
        side_effect=requests.Timeout("timed out"),
    ):
        with pytest.raises(ClassificationError, match="timed out"):
            HttpColumnClassifier("https://example.test").classify(["A"], "")


def test_http_classifier_non_json_body_raises():
    resp = MagicMock()
    resp.json.side_effect = ValueError("Expecting value")
    with patch("attendee_import.analysis.classifier.requests.post", return_value=resp):
        with pytest.raises(ClassificationError, match="not JSON"):
            HttpColumnClassifier("https://example.test").classify(["A"], "")


def test_header_keyword_classifier():
    headers = ["First Name", "Last Name", "Full Name", "Email Address", "Mobile", "Company"]
    suggestion = HeaderKeywordClassifier().classify(headers, "")
    assert suggestion == ColumnSuggestion("Full Name", "Email Address", "Mobile")


@pytest.mark.parametrize(
    "headers, expected",
    [
        (["Company Name", "Name", "Email"], "Name"),
        (["Event Name", "Username", "Attendee Name", "Email"], "Attendee Name"),
        (["Organisation Name", "Guest name", "Email"], "Guest name"),
        (["Company Name", "Contact Name", "Email"], "Contact Name"),
        (["Company Name", "Username", "Email"], None),
    ],
)
def test_header_keyword_classifier_prefers_person_name_headers(headers, expected):
    assert HeaderKeywordClassifier().classify(headers, "").name_column == expected


def test_header_keyword_classifier_leaves_split_names_alone():
    suggestion = HeaderKeywordClassifier().classify(["First Name", "Surname", "Mail"], "")
    assert suggestion.name_column is None
    assert suggestion.email_column == "Mail"


def test_classify_columns_wraps_unexpected_errors():
    service = MagicMock()
    service.classify.side_effect = KeyError("mapping")
    with pytest.raises(ClassificationError):
        classify_columns(["A"], [["x"]], service)


def test_classify_columns_sends_capped_sample(static_classifier):
    service = static_classifier(name="Name", email="Email")
    roles = classify_columns(["Name", "Email"], [["a", "b"]] * 5, service, sample_limit=2)
    assert (roles.name_index, roles.email_index, roles.phone_index) == (0, 1, UNKNOWN)
    assert service.calls == [(["Name", "Email"], "a,b\na,b")]


def test_build_classifier_modes(monkeypatch):
    assert isinstance(build_classifier(ClassifierConfig(mode="headers")), HeaderKeywordClassifier)

    monkeypatch.setenv("MY_KEY", "secret")
    remote = build_classifier(ClassifierConfig(mode="remote", endpoint="https://x.test", api_key_env="MY_KEY"))
    assert isinstance(remote, HttpColumnClassifier)
    assert remote.api_key == "secret"

    with pytest.raises(ClassificationError):
        build_classifier(ClassifierConfig(mode="remote", endpoint=None))
