from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..models.config_models import DEFAULT_SAMPLE_ROW_LIMIT
from ..models.preview_result import PreviewResult
from ..tabular.reader import read_tabular_file
from .classifier import classify_columns
from .headers import normalize_headers
from .reconciler import reconcile_rows

"""Analysis phase: decode -> normalize headers -> classify -> reconcile.

Nothing here writes anywhere; the only outbound call is the classification
service.
"""

logger = logging.getLogger(__name__)


def analyze_rows(
    rows: Sequence[Sequence[str]],
    classifier: Any,
    sample_limit: int = DEFAULT_SAMPLE_ROW_LIMIT,
) -> PreviewResult:
    """Build a preview from decoded rows (row 0 = header).

    Raises:
        ClassificationError: the classification service failed.
    """
    headers = normalize_headers(rows[0] if rows else [])
    data_rows = list(rows[1:])
    roles = classify_columns(headers, data_rows, classifier, sample_limit)
    return reconcile_rows(headers, roles, data_rows)


def analyze_file(
    path: Path,
    classifier: Any,
    sample_limit: int = DEFAULT_SAMPLE_ROW_LIMIT,
) -> PreviewResult:
    """Decode ``path`` and build its preview.

    Raises:
        TabularDecodeError: unsupported, empty or unreadable file (before any network call).
        ClassificationError: the classification service failed.
    """
    rows = read_tabular_file(path)
    logger.info("decoded file=%s rows=%d", path.name, len(rows) - 1)
    return analyze_rows(rows, classifier, sample_limit)
