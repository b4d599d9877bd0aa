#!/usr/bin/env python3
"""
Reprice every golfer from a season's results.

Usage:
    python scripts/calculate_prices.py 2025
    python scripts/calculate_prices.py 2025 --show
"""

import argparse
from pathlib import Path

from fantasygolf.config import get_config
from fantasygolf.golfers import list_golfers
from fantasygolf.logging_config import setup_logging
from fantasygolf.pricing import calculate_golfer_prices
from fantasygolf.store import JsonStore


def main():
    parser = argparse.ArgumentParser(description="Calculate golfer prices")
    parser.add_argument("season", type=int, help="Season whose results set the prices (e.g., 2025)")
    parser.add_argument("--data-dir", "-d", default=None, help="Store directory (default: from league config)")
    parser.add_argument("--show", action="store_true", help="Print the new price list")
    args = parser.parse_args()

    setup_logging()
    data_dir = Path(args.data_dir or get_config().data_dir)
    if not data_dir.is_absolute():
        data_dir = Path(__file__).parent.parent / data_dir
    store = JsonStore(data_dir)

    result = calculate_golfer_prices(store, args.season)
    print(f"\n{result.summary}")

    if args.show:
        print(f"\n  {'Golfer':<30} {'Price':>8}")
        print("  " + "-" * 40)
        for golfer in list_golfers(store):
            print(f"  {golfer.name:<30} {golfer.price / 1_000_000:>7.1f}M")


if __name__ == "__main__":
    main()
