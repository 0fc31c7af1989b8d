from __future__ import annotations

import math
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from attendee_import.tabular.reader import (
    EmptyFileError,
    TabularDecodeError,
    UnsupportedFileError,
    cell_to_text,
    decode_text,
    read_tabular_file,
)


def test_csv_keeps_ragged_rows(tmp_path: Path):
    p = tmp_path / "a.csv"
    p.write_text("Name,Email,Notes\nAnn,ann@x.io,VIP\nBob\n", encoding="utf-8")
    assert read_tabular_file(p) == [["Name", "Email", "Notes"], ["Ann", "ann@x.io", "VIP"], ["Bob"]]


def test_csv_with_bom_and_quotes(tmp_path: Path):
    p = tmp_path / "a.csv"
    p.write_text('\ufeffName,Notes\n"Doe, Jane","said ""hi"""\n', encoding="utf-8")
    rows = read_tabular_file(p)
    assert rows[0] == ["Name", "Notes"]
    assert rows[1] == ["Doe, Jane", 'said "hi"']


def test_semicolon_delimiter_is_sniffed():
    rows = decode_text("Name;Email\nAnn;ann@x.io\nBob;bob@x.io\n")
    assert rows == [["Name", "Email"], ["Ann", "ann@x.io"], ["Bob", "bob@x.io"]]


def test_tsv_uses_tabs(tmp_path: Path):
    p = tmp_path / "a.tsv"
    p.write_text("Name\tEmail\nAnn, Jr\tann@x.io\n", encoding="utf-8")
    assert read_tabular_file(p)[1] == ["Ann, Jr", "ann@x.io"]


def test_xlsx_first_sheet_as_text(tmp_path: Path):
    p = tmp_path / "a.xlsx"
    df = pd.DataFrame(
        [["Ann", "ann@x.io", 5551234], ["Bob", "", None]],
        columns=["Name", "Email", "Phone"],
    )
    df.to_excel(p, index=False, engine="openpyxl")
    rows = read_tabular_file(p)
    assert rows[0] == ["Name", "Email", "Phone"]
    assert rows[1] == ["Ann", "ann@x.io", "5551234"]
    assert rows[2] == ["Bob"]


def test_unsupported_extension(tmp_path: Path):
    p = tmp_path / "a.pdf"
    p.write_bytes(b"%PDF")
    with pytest.raises(UnsupportedFileError):
        read_tabular_file(p)


@pytest.mark.parametrize("text", ["", "Name,Email\n", "Name,Email\n,\n , \n"])
def test_header_only_or_blank_files_are_empty(tmp_path: Path, text: str):
    p = tmp_path / "a.csv"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(EmptyFileError):
        read_tabular_file(p)


def test_non_utf8_text_is_a_decode_error(tmp_path: Path):
    p = tmp_path / "a.csv"
    p.write_bytes(b"Name\n\xff\xfe\xfa\n")
    with pytest.raises(TabularDecodeError):
        read_tabular_file(p)


def test_corrupt_spreadsheet_is_a_decode_error(tmp_path: Path):
    p = tmp_path / "a.xlsx"
    p.write_bytes(b"not a zip file")
    with pytest.raises(TabularDecodeError):
        read_tabular_file(p)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (math.nan, ""),
        (pd.NaT, ""),
        (42.0, "42"),
        (3.5, "3.5"),
        (7, "7"),
        (datetime(2024, 5, 1, 9, 30), "2024-05-01T09:30:00"),
        ("  kept  ", "  kept  "),
    ],
)
def test_cell_to_text(value, expected):
    assert cell_to_text(value) == expected


@pytest.mark.parametrize("name", ["missing.csv", "missing.xlsx"])
def test_missing_path_is_a_decode_error(tmp_path: Path, name: str):
    with pytest.raises(TabularDecodeError, match="file not found"):
        read_tabular_file(tmp_path / name)


def test_directory_path_is_a_decode_error(tmp_path: Path):
    d = tmp_path / "folder.csv"
    d.mkdir()
    with pytest.raises(TabularDecodeError):
        read_tabular_file(d)


def test_field_over_csv_limit_is_a_decode_error(tmp_path: Path):
    p = tmp_path / "a.csv"
    p.write_text("Name,Email,Notes\nAnn,ann@x.io," + "x" * 200_000 + "\n", encoding="utf-8")
    with pytest.raises(TabularDecodeError, match="malformed delimited text"):
        read_tabular_file(p)
