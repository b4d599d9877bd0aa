#!/usr/bin/env python3
"""
Import a prior season's results.

Accepts a comma- or tab-separated export (header row first) or an .xlsx
workbook with columns: date, position, player, raw score, and optionally
tournament type and scoring format.

Usage:
    python scripts/upload_season.py results_2025.csv
    python scripts/upload_season.py results_2025.xlsx --sheet "Results"
"""

import argparse
from pathlib import Path

from fantasygolf.config import get_config
from fantasygolf.logging_config import setup_logging
from fantasygolf.season_upload import process_season_upload, process_season_workbook, read_results_text
from fantasygolf.store import JsonStore


def main():
    parser = argparse.ArgumentParser(description="Import prior-season results")
    parser.add_argument("path", help="CSV/TSV export or .xlsx workbook")
    parser.add_argument("--sheet", default=None, help="Worksheet name for .xlsx input (default: first sheet)")
    parser.add_argument("--data-dir", "-d", default=None, help="Store directory (default: from league config)")
    args = parser.parse_args()

    setup_logging()
    data_dir = Path(args.data_dir or get_config().data_dir)
    if not data_dir.is_absolute():
        data_dir = Path(__file__).parent.parent / data_dir
    store = JsonStore(data_dir)

    path = Path(args.path)
    if path.suffix.lower() == ".xlsx":
        result = process_season_workbook(store, path, sheet_name=args.sheet)
    else:
        result = process_season_upload(store, read_results_text(path.read_bytes()))

    print(f"\n{result.summary}")


if __name__ == "__main__":
    main()
