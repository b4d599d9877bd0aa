#!/usr/bin/env python3
"""
Recalculate stored scores from their raw inputs.

Reapplies every tournament's current type, format and multiplier to its
stored positions and raw scores. With --check, only reports score documents
that are inconsistent with the scoring rules.

Usage:
    python scripts/recalculate_scores.py
    python scripts/recalculate_scores.py --season 2026
    python scripts/recalculate_scores.py --check
"""

import argparse
import logging
import sys
from pathlib import Path

from fantasygolf.config import get_config
from fantasygolf.constants import SCORES, TOURNAMENTS
from fantasygolf.logging_config import setup_logging
from fantasygolf.scores import recalculate_all
from fantasygolf.store import JsonStore
from fantasygolf.validators import validate_score_record


def open_store(data_dir: str | None) -> JsonStore:
    path = Path(data_dir or get_config().data_dir)
    if not path.is_absolute():
        path = Path(__file__).parent.parent / path
    return JsonStore(path)


def check_scores(store: JsonStore, season: int | None) -> int:
    """Print every inconsistent score document. Returns the number found."""
    query = {'season': season} if season is not None else None
    tournament_ids = {t['id'] for t in store.find(TOURNAMENTS, query)}
    problems = []
    for score in store.find(SCORES):
        if score['tournament_id'] in tournament_ids:
            problems.extend(validate_score_record(score))

    if not problems:
        print("  ✓ All scores are consistent")
        return 0
    print(f"  ⚠ {len(problems)} problems:")
    for problem in problems:
        print(f"    {problem}")
    return len(problems)


def main():
    parser = argparse.ArgumentParser(description="Recalculate fantasy golf scores")
    parser.add_argument("--season", "-s", type=int, default=None, help="Limit to one season (default: all)")
    parser.add_argument("--data-dir", "-d", default=None, help="Store directory (default: from league config)")
    parser.add_argument("--check", action="store_true", help="Report inconsistent scores without writing")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    store = open_store(args.data_dir)

    if args.check:
        sys.exit(1 if check_scores(store, args.season) else 0)

    results = recalculate_all(store, season=args.season)
    print(f"\nRecalculated {sum(results.values())} scores across {len(results)} tournaments")


if __name__ == "__main__":
    main()
