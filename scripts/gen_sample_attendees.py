#!/usr/bin/env python3
"""Generate synthetic attendee upload files for manual and load testing.

The generated file looks like a real-world export:
- Row 1: header row with deliberately uneven labels
- Row 2+: attendee rows, sprinkled with blank rows, rows without an email,
  rows with an email hidden in the notes column, and unusable rows

Works with the attendee import CLI (CSV or XLSX, chosen by extension).
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

FIRST_NAMES = ["Ada", "Grace", "Alan", "Linus", "Barbara", "Ken", "Margaret", "John", "Radia", "Dennis"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Torvalds", "Liskov", "Thompson", "Hamilton", "Smith", "Perlman", "Ritchie"]
COMPANIES = ["Acme", "Globex", "Initech", "Umbrella", "Hooli", ""]
DIETS = ["", "Vegetarian", "Vegan", "Halal", "Gluten free"]

HEADERS = ["Full Name", "Email Address", "Mobile", "Company", "Dietary Needs", "Notes"]


def generate_attendee_rows(rows: int, seed: int = 42, blank_ratio: float = 0.02,
                           name_only_ratio: float = 0.05, junk_ratio: float = 0.01) -> pd.DataFrame:
    """Generate ``rows`` data rows (header excluded) as a string DataFrame.

    Args:
        rows: Number of data rows to generate
        seed: Random seed for reproducible data
        blank_ratio: Share of fully blank rows
        name_only_ratio: Share of rows with a name but no email anywhere
        junk_ratio: Share of rows with neither a name nor an email
    """
    rng = np.random.default_rng(seed)
    kinds = rng.choice(
        ["normal", "blank", "name_only", "junk", "email_in_notes"],
        size=rows,
        p=[1 - blank_ratio - name_only_ratio - junk_ratio - 0.02,
           blank_ratio, name_only_ratio, junk_ratio, 0.02],
    )
    data: list[list[str]] = []
    for i, kind in enumerate(kinds):
        first = FIRST_NAMES[rng.integers(len(FIRST_NAMES))]
        last = LAST_NAMES[rng.integers(len(LAST_NAMES))]
        name = f"{first} {last}"
        email = f"{first.lower()}.{last.lower()}{i}@example.com"
        phone = f"+1 555 {rng.integers(100, 999)} {rng.integers(1000, 9999)}"
        company = COMPANIES[rng.integers(len(COMPANIES))]
        diet = DIETS[rng.integers(len(DIETS))]
        if kind == "blank":
            data.append([""] * len(HEADERS))
        elif kind == "name_only":
            data.append([name, "", "", company, diet, ""])
        elif kind == "junk":
            data.append(["", "", "", "", "", "123"])
        elif kind == "email_in_notes":
            data.append([name, "", phone, company, diet, f"contact: {email}"])
        else:
            data.append([name, email, phone, company, diet, ""])
    return pd.DataFrame(data, columns=HEADERS)


def write_attendee_file(output_path: Path, df: pd.DataFrame) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = output_path.suffix.lower()
    if suffix == ".xlsx":
        df.to_excel(output_path, index=False, engine="openpyxl")
    elif suffix in {".csv", ".txt"}:
        df.to_csv(output_path, index=False)
    elif suffix == ".tsv":
        df.to_csv(output_path, index=False, sep="\t")
    else:
        raise ValueError(f"unsupported output extension: {suffix}")
    print(f"Created attendee file: {output_path}")
    print(f"  Data rows: {len(df):,}")
    print(f"  Columns: {', '.join(df.columns)}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic attendee files for the import tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s attendees.csv
  %(prog)s attendees.xlsx --rows 5000 --seed 7
        """
    )
    parser.add_argument("output", type=Path, help="Output file (.csv, .tsv, .txt, .xlsx)")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--blank-ratio", type=float, default=0.02, help="Share of blank rows")
    parser.add_argument("--name-only-ratio", type=float, default=0.05, help="Share of rows without email")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.blank_ratio + args.name_only_ratio <= 0.9:
        print("Error: ratios must add up to at most 0.9", file=sys.stderr)
        return 1

    try:
        df = generate_attendee_rows(
            args.rows, args.seed, blank_ratio=args.blank_ratio, name_only_ratio=args.name_only_ratio
        )
        write_attendee_file(args.output, df)
        return 0
    except Exception as e:
        print(f"\nError generating attendee file: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
