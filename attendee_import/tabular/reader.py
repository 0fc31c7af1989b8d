from __future__ import annotations

import csv
import io
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

"""Tabular decoder: uploaded attendee file -> rows of string cells.

Row 0 is the header row, everything after it is data. Rows are returned
exactly as wide as the source line or sheet row (ragged rows are kept), and
every cell is a string ("" for empty cells). No header inference happens here.

Delimited text is read with the csv module (ragged lines survive untouched);
spreadsheets go through pandas/openpyxl, first sheet only.
"""

__all__ = [
    "TabularDecodeError",
    "UnsupportedFileError",
    "EmptyFileError",
    "TEXT_EXTENSIONS",
    "SPREADSHEET_EXTENSIONS",
    "read_tabular_file",
    "decode_text",
    "cell_to_text",
]

TEXT_EXTENSIONS = {".csv", ".tsv", ".txt"}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xlsm"}
SNIFF_DELIMITERS = ",;\t|"


class TabularDecodeError(Exception):
    """Raised when an uploaded file cannot be turned into rows."""


class UnsupportedFileError(TabularDecodeError):
    """Raised for file extensions the decoder does not handle."""


class EmptyFileError(TabularDecodeError):
    """Raised when the file lacks a header row plus at least one data row."""


def cell_to_text(val: Any) -> str:
    """Render a spreadsheet cell the way a user sees it (phones stay 5551234, not 5551234.0)."""
    if val is None or val is pd.NaT:
        return ""
    if isinstance(val, float):
        if pd.isna(val):
            return ""
        if val.is_integer():
            return str(int(val))
        return str(val)
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val)


def _sniff_delimiter(text: str, suffix: str) -> str:
    if suffix == ".tsv":
        return "\t"
    sample = text[:8192]
    try:
        return csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ","


def decode_text(text: str, suffix: str = ".csv") -> list[list[str]]:
    """Split delimited text into rows (ragged rows preserved)."""
    delimiter = _sniff_delimiter(text, suffix)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [list(row) for row in reader]


def _read_text_file(path: Path) -> list[list[str]]:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise TabularDecodeError(f"file '{path.name}' is not valid UTF-8 text: {e}") from e
    except OSError as e:
        raise TabularDecodeError(f"could not read file '{path.name}': {e}") from e
    try:
        return decode_text(text, path.suffix.lower())
    except csv.Error as e:  # oversized field, NUL byte
        raise TabularDecodeError(f"malformed delimited text in '{path.name}': {e}") from e


def _read_spreadsheet(path: Path) -> list[list[str]]:
    try:
        # header=None: row 0 stays a data row so the header normalizer sees it raw
        df = pd.read_excel(
            path, sheet_name=0, header=None, dtype=object, keep_default_na=False
        )
    except Exception as e:  # openpyxl raises ValueError/zipfile/KeyError flavours for corrupt files
        raise TabularDecodeError(f"could not read spreadsheet '{path.name}': {e}") from e

    rows: list[list[str]] = []
    for raw in df.itertuples(index=False, name=None):
        cells = [cell_to_text(v) for v in raw]
        # pandas pads short rows to the sheet width; trim the padding back off
        while cells and cells[-1] == "":
            cells.pop()
        rows.append(cells)
    return rows


def read_tabular_file(path: Path) -> list[list[str]]:
    """Read an uploaded attendee file into rows of string cells.

    Raises
    ------
    UnsupportedFileError: extension is neither delimited text nor .xlsx/.xlsm
    EmptyFileError: no header row plus at least one data row
    TabularDecodeError: missing path, unreadable or malformed content
    """
    if not path.is_file():
        raise TabularDecodeError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in TEXT_EXTENSIONS:
        rows = _read_text_file(path)
    elif suffix in SPREADSHEET_EXTENSIONS:
        rows = _read_spreadsheet(path)
    else:
        raise UnsupportedFileError(
            f"unsupported file type '{suffix or path.name}' "
            f"(expected one of {sorted(TEXT_EXTENSIONS | SPREADSHEET_EXTENSIONS)})"
        )

    if len(rows) < 2 or not any(c.strip() for row in rows[1:] for c in row):
        raise EmptyFileError(
            f"file '{path.name}' must contain a header row and at least one data row"
        )
    return rows
