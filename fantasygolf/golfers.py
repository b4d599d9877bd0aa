"""Golfer management and season stat snapshots."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .constants import GOLFERS, SCORES, SEASONS, STATS_SEASONS, TOURNAMENTS
from .errors import NotFoundError, StateError
from .models import Golfer, GolferStats
from .schemas import GolferCreate, GolferUpdate, parse_request
from .store import MemoryStore
from .utils import full_name

logger = logging.getLogger('fantasygolf.golfers')


def stats_key(season: int) -> str:
    """Snapshot field for a season; seasons without their own fall back to 2024."""
    return f'stats_{season if season in STATS_SEASONS else STATS_SEASONS[0]}'


def empty_stats() -> dict:
    return {f'stats_{year}': GolferStats().to_doc() for year in STATS_SEASONS}


def create_golfer(store: MemoryStore, data: GolferCreate | dict) -> Golfer:
    request = parse_request(GolferCreate, data)
    now = datetime.now()
    doc = store.insert(GOLFERS, {**request.model_dump(), **empty_stats(), 'created_at': now, 'updated_at': now})
    logger.info(f'Created golfer {full_name(doc)}')
    return Golfer.from_doc(doc)


def get_golfer(store: MemoryStore, golfer_id: str) -> Golfer:
    doc = store.get(GOLFERS, golfer_id)
    if doc is None:
        raise NotFoundError('Golfer not found')
    return Golfer.from_doc(doc)


def list_golfers(store: MemoryStore, active_only: bool = False) -> list[Golfer]:
    """Golfers ordered by price, most expensive first."""
    query = {'is_active': True} if active_only else None
    return [Golfer.from_doc(d) for d in store.find(GOLFERS, query, sort_by='price', descending=True)]


def get_golfers_by_ids(store: MemoryStore, golfer_ids: Iterable[str]) -> list[Golfer]:
    ids = set(golfer_ids)
    if not ids:
        return []
    return [Golfer.from_doc(d) for d in store.find(GOLFERS, {'id': ids})]


def update_golfer(store: MemoryStore, golfer_id: str, data: GolferUpdate | dict) -> Golfer:
    request = parse_request(GolferUpdate, data)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    changes['updated_at'] = datetime.now()
    doc = store.update(GOLFERS, golfer_id, changes)
    if doc is None:
        raise NotFoundError('Golfer not found')
    return Golfer.from_doc(doc)


def delete_golfer(store: MemoryStore, golfer_id: str) -> bool:
    """Delete a golfer. Refused while any score references them."""
    if store.get(GOLFERS, golfer_id) is None:
        return False
    referenced = store.count(SCORES, {'golfer_id': golfer_id})
    if referenced:
        raise StateError(f'Golfer has {referenced} scores and cannot be deleted; deactivate them instead')
    return store.delete(GOLFERS, golfer_id)


def build_stats(scores: list[dict]) -> GolferStats:
    """Snapshot counts from a golfer's participated scores in one season."""
    return GolferStats(
        times_played=len(scores),
        times_finished_1st=sum(1 for s in scores if s.get('position') == 1),
        times_finished_2nd=sum(1 for s in scores if s.get('position') == 2),
        times_finished_3rd=sum(1 for s in scores if s.get('position') == 3),
        times_scored_36_plus=sum(1 for s in scores if (s.get('raw_score') or 0) >= 36),
        times_scored_32_plus=sum(1 for s in scores if (s.get('raw_score') or 0) >= 32),
    )


def recalculate_golfer_stats(store: MemoryStore, golfer_ids: Iterable[str], now: Optional[datetime] = None) -> int:
    """
    Rebuild each golfer's per-season snapshots from their stored scores.

    Every season with at least one tournament is rebuilt; the updates land
    in a single batch.

    Returns:
        Number of golfer documents updated
    """
    golfer_ids = set(golfer_ids)
    if not golfer_ids:
        return 0
    now = now or datetime.now()

    changes: dict[str, dict] = {gid: {} for gid in golfer_ids}
    for season in store.find(SEASONS):
        season_number = int(season['name']) if season['name'].isdigit() else 0
        tournament_ids = {t['id'] for t in store.find(TOURNAMENTS, {'season': season_number})}
        if not tournament_ids:
            continue
        scores = store.find(SCORES, {'tournament_id': tournament_ids, 'golfer_id': golfer_ids, 'participated': True})
        by_golfer: dict[str, list[dict]] = {gid: [] for gid in golfer_ids}
        for score in scores:
            by_golfer[score['golfer_id']].append(score)
        for gid, golfer_scores in by_golfer.items():
            changes[gid][stats_key(season_number)] = build_stats(golfer_scores).to_doc()

    operations = [('update', gid, {**fields, 'updated_at': now}) for gid, fields in changes.items() if fields]
    updated = store.bulk_write(GOLFERS, operations)
    logger.info(f'Rebuilt stats for {len(updated)} golfers')
    return len(updated)
