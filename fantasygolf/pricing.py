"""
Golfer market prices from season performance.

value = season multiplied points + 0.5 per appearance, normalised by the
best golfer's value, mapped linearly onto 3M-15M and rounded to the nearest
500k.
"""

import logging
import math
from datetime import datetime
from typing import Optional

import polars as pl

from .constants import (
    APPEARANCE_BONUS,
    GOLFERS,
    MAX_PRICE,
    MIN_PRICE,
    PRICE_ROUNDING,
    SCORES,
    TOURNAMENTS,
)
from .models import PricingResult
from .schemas import CalculatePricesRequest, parse_request
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.pricing')


def price_for_value(value: float, max_value: float) -> int:
    """Map a performance value onto the price band."""
    ratio = value / max(1.0, max_value)
    raw = MIN_PRICE + ratio * (MAX_PRICE - MIN_PRICE)
    rounded = math.floor(raw / PRICE_ROUNDING + 0.5) * PRICE_ROUNDING
    return max(MIN_PRICE, rounded)


def performance_frame(golfer_ids: list[str], scores: list[dict]) -> pl.DataFrame:
    """
    One row per golfer: season points, appearances and performance value.

    Golfers without scores get zeros.
    """
    golfers = pl.DataFrame({'golfer_id': golfer_ids}, schema={'golfer_id': pl.Utf8})
    played = [s for s in scores if s.get('participated')]
    score_frame = pl.DataFrame(
        {
            'golfer_id': [s['golfer_id'] for s in played],
            'multiplied_points': [s.get('multiplied_points') or 0 for s in played],
        },
        schema={'golfer_id': pl.Utf8, 'multiplied_points': pl.Int64},
    )
    totals = score_frame.group_by('golfer_id').agg(
        pl.col('multiplied_points').sum().alias('points'),
        pl.len().alias('times_played'),
    )

    return (
        golfers.join(totals, on='golfer_id', how='left')
        .with_columns(
            pl.col('points').fill_null(0),
            pl.col('times_played').fill_null(0),
        )
        .with_columns(
            (pl.col('points') + pl.col('times_played') * APPEARANCE_BONUS).alias('value'),
        )
    )


def calculate_golfer_prices(
    store: MemoryStore,
    season: int,
    now: Optional[datetime] = None,
) -> PricingResult:
    """
    Reprice every golfer from their participated scores in ``season``.

    Golfers with no scores get the floor price. All prices are written in a
    single batch.

    Raises:
        ValidationError: Season outside 2020 to five years ahead
    """
    season = parse_request(CalculatePricesRequest, {'season': season}).season
    golfer_ids = [g['id'] for g in store.find(GOLFERS)]
    if not golfer_ids:
        return PricingResult(updated=0, min_price=0, max_price=0, summary='No golfers to price')

    tournament_ids = {t['id'] for t in store.find(TOURNAMENTS, {'season': season})}
    scores = store.find(SCORES, {'tournament_id': tournament_ids}) if tournament_ids else []

    frame = performance_frame(golfer_ids, scores)
    max_value = float(frame['value'].max() or 0)
    prices = {
        row['golfer_id']: price_for_value(row['value'], max_value)
        for row in frame.iter_rows(named=True)
    }

    now = now or datetime.now()
    store.bulk_write(GOLFERS, [('update', gid, {'price': price, 'updated_at': now}) for gid, price in prices.items()])

    min_price, max_price = min(prices.values()), max(prices.values())
    summary = (
        f'Updated {len(prices)} golfer prices for {season}: '
        f'${min_price / 1_000_000:.1f}M - ${max_price / 1_000_000:.1f}M'
    )
    logger.info(summary)
    return PricingResult(updated=len(prices), min_price=min_price, max_price=max_price, summary=summary)
