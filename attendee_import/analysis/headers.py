from __future__ import annotations

from collections.abc import Sequence

"""Header normalization for uploaded attendee files."""

__all__ = [
    "normalize_headers",
]


def normalize_headers(raw_headers: Sequence[str | None]) -> list[str]:
    """Return unique, non-empty header labels for row 0 of an upload.

    - cells are trimmed; an empty cell becomes ``Column N`` (1-based position)
    - repeats are counted case-insensitively and the Nth occurrence (N >= 2)
      is suffixed with `` (N)``, e.g. ``Email``, ``email (2)``

    A suffixed label that collides with a header already emitted (``a``,
    ``a``, ``a (2)``) keeps counting up until it is free.

    Pure function: the same input always yields the same output.
    """
    seen: dict[str, int] = {}
    used: set[str] = set()
    headers: list[str] = []
    for i, raw in enumerate(raw_headers):
        base = (raw or "").strip() or f"Column {i + 1}"
        key = base.lower()
        seen[key] = seen.get(key, 0) + 1
        label = base if seen[key] == 1 else f"{base} ({seen[key]})"
        while label.lower() in used:
            seen[key] += 1
            label = f"{base} ({seen[key]})"
        used.add(label.lower())
        headers.append(label)
    return headers
