from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import requests

from ..models.attendee import UNKNOWN, ColumnRoles
from ..models.config_models import DEFAULT_SAMPLE_ROW_LIMIT, ClassifierConfig

"""Column classification: which header holds the name, email and phone.

The classification service reasons over header *text* and sample values and
answers with header labels (not positions); labels are resolved back to
indices here. Any service failure fails the whole analysis: no retry, no
partial preview.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ClassificationError",
    "ColumnSuggestion",
    "HttpColumnClassifier",
    "HeaderKeywordClassifier",
    "build_sample_text",
    "resolve_column_roles",
    "classify_columns",
    "build_classifier",
]

SAMPLE_CELL_DELIMITER = ","
_ABSENT_LABELS = {"", "null", "none", "n/a"}


class ClassificationError(Exception):
    """Raised when the classification service cannot produce column roles."""


@dataclass(frozen=True)
class ColumnSuggestion:
    """Header labels suggested for each role (None = no suggestion)."""
    name_column: str | None = None
    email_column: str | None = None
    phone_column: str | None = None


def build_sample_text(
    data_rows: Sequence[Sequence[str]], limit: int = DEFAULT_SAMPLE_ROW_LIMIT
) -> str:
    """Join up to ``limit`` data rows: cells by ',' and rows by newline."""
    return "\n".join(
        SAMPLE_CELL_DELIMITER.join(c or "" for c in row) for row in list(data_rows)[:limit]
    )


def _clean_label(label: Any) -> str | None:
    if not isinstance(label, str):
        return None
    stripped = label.strip()
    if stripped.lower() in _ABSENT_LABELS:
        return None
    return stripped


def _index_of(headers: Sequence[str], label: str | None) -> int:
    label = _clean_label(label)
    if label is None:
        return UNKNOWN
    wanted = label.lower()
    for i, h in enumerate(headers):
        if h.strip().lower() == wanted:
            return i
    return UNKNOWN


def resolve_column_roles(headers: Sequence[str], suggestion: ColumnSuggestion) -> ColumnRoles:
    """Map suggested labels onto header indices (case-insensitive exact match)."""
    roles = ColumnRoles(
        name_index=_index_of(headers, suggestion.name_column),
        email_index=_index_of(headers, suggestion.email_column),
        phone_index=_index_of(headers, suggestion.phone_column),
    )
    logger.debug(
        "column roles resolved name=%d email=%d phone=%d suggestion=%s",
        roles.name_index,
        roles.email_index,
        roles.phone_index,
        suggestion,
    )
    return roles


class HttpColumnClassifier:
    """Remote classification service client.

    POSTs ``{"csvHeaders": [...], "sampleRows": "<text>"}`` and expects
    ``{"success": true, "mapping": {"nameColumn": ..., "emailColumn": ...,
    "phoneColumn": ...}}`` back.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.session = session

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def classify(self, headers: Sequence[str], sample_text: str) -> ColumnSuggestion:
        post = self.session.post if self.session is not None else requests.post
        try:
            response = post(
                self.endpoint,
                json={"csvHeaders": list(headers), "sampleRows": sample_text},
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise ClassificationError(f"classification request failed: {e}") from e
        except ValueError as e:
            raise ClassificationError(f"classification response is not JSON: {e}") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise ClassificationError(
                f"classification service reported failure: {message or 'no details'}"
            )
        mapping = body.get("mapping")
        if not isinstance(mapping, dict):
            raise ClassificationError("classification response has no mapping")
        return ColumnSuggestion(
            name_column=_clean_label(mapping.get("nameColumn")),
            email_column=_clean_label(mapping.get("emailColumn")),
            phone_column=_clean_label(mapping.get("phoneColumn")),
        )


class HeaderKeywordClassifier:
    """Offline classifier: picks the first header mentioning each role keyword."""

    NAME_EXACT = ("name", "full name", "attendee name", "guest name")
    NAME_KEYWORDS = ("full name", "name")
    EMAIL_KEYWORDS = ("email", "e-mail", "mail")
    PHONE_KEYWORDS = ("phone", "mobile", "cell", "tel")
    # "first name" / "last name" are left to the reconciler's first+last fallback
    NAME_EXCLUDED = re.compile(
        r"first|last|given|family|sur|company|organi[sz]ation|user|event", re.IGNORECASE
    )

    @staticmethod
    def _first_match(headers: Sequence[str], keywords: Sequence[str], taken: set[str]) -> str | None:
        for kw in keywords:
            for h in headers:
                if h in taken:
                    continue
                if kw in h.lower():
                    return h
        return None

    @staticmethod
    def _exact_match(headers: Sequence[str], labels: Sequence[str], taken: set[str]) -> str | None:
        for label in labels:
            for h in headers:
                if h not in taken and h.strip().lower() == label:
                    return h
        return None

    def classify(self, headers: Sequence[str], sample_text: str) -> ColumnSuggestion:
        taken: set[str] = set()
        email = self._first_match(headers, self.EMAIL_KEYWORDS, taken)
        if email:
            taken.add(email)
        phone = self._first_match(headers, self.PHONE_KEYWORDS, taken)
        if phone:
            taken.add(phone)
        name = self._exact_match(headers, self.NAME_EXACT, taken)
        if name is None:
            name_candidates = [h for h in headers if not self.NAME_EXCLUDED.search(h)]
            name = self._first_match(name_candidates, self.NAME_KEYWORDS, taken)
        return ColumnSuggestion(name_column=name, email_column=email, phone_column=phone)


def classify_columns(
    headers: Sequence[str],
    data_rows: Sequence[Sequence[str]],
    service: Any,
    sample_limit: int = DEFAULT_SAMPLE_ROW_LIMIT,
) -> ColumnRoles:
    """Ask ``service`` for role labels and resolve them against ``headers``.

    Raises:
        ClassificationError: on any service failure (network, timeout, bad payload).
    """
    sample_text = build_sample_text(data_rows, sample_limit)
    try:
        suggestion = service.classify(list(headers), sample_text)
    except ClassificationError:
        raise
    except Exception as e:
        raise ClassificationError(f"classification failed: {e}") from e
    return resolve_column_roles(headers, suggestion)


def build_classifier(cfg: ClassifierConfig) -> Any:
    """Create the classification service selected by config."""
    if cfg.mode == "headers":
        return HeaderKeywordClassifier()
    if not cfg.endpoint:
        raise ClassificationError("classifier endpoint is not configured")
    return HttpColumnClassifier(
        cfg.endpoint,
        api_key=os.getenv(cfg.api_key_env),
        timeout_seconds=cfg.timeout_seconds,
    )
