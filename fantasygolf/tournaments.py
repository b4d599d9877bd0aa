"""Tournament management."""

import logging
from datetime import datetime
from typing import Any, Optional

from .cache import Cache, invalidate_leaderboards
from .constants import TOURNAMENTS
from .errors import NotFoundError
from .models import Tournament
from .schemas import TournamentCreate, TournamentUpdate, parse_request
from .scores import delete_scores_for_tournament, recalculate_scores_for_tournament
from .scoring import multiplier_for_type, resolve_scoring_format, tournament_type_config
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.tournaments')

# Edits to these fields change how every stored score is computed
SCORING_FIELDS = ('tournament_type', 'scoring_format', 'is_multi_day')


def build_tournament_doc(request: TournamentCreate, now: datetime) -> dict[str, Any]:
    """Fill unset scoring fields from the tournament type table."""
    config = tournament_type_config(request.tournament_type)
    is_multi_day = request.is_multi_day
    if is_multi_day is None:
        is_multi_day = config['default_multi_day']
    return {
        'name': request.name,
        'start_date': request.start_date,
        'end_date': request.end_date,
        'season': request.season,
        'tournament_type': request.tournament_type,
        'scoring_format': resolve_scoring_format(request.tournament_type, request.scoring_format),
        'is_multi_day': is_multi_day,
        'multiplier': multiplier_for_type(request.tournament_type),
        'golfer_count_tier': request.golfer_count_tier or '20+',
        'status': request.status,
        'participating_golfer_ids': list(request.participating_golfer_ids),
        'created_at': now,
        'updated_at': now,
    }


def create_tournament(store: MemoryStore, data: TournamentCreate | dict, cache: Optional[Cache] = None) -> Tournament:
    request = parse_request(TournamentCreate, data)
    doc = store.insert(TOURNAMENTS, build_tournament_doc(request, datetime.now()))
    if doc['status'] != 'draft':
        invalidate_leaderboards(cache, doc['season'])
    logger.info(f"Created tournament {doc['name']} ({doc['tournament_type']}, x{doc['multiplier']})")
    return Tournament.from_doc(doc)


def get_tournament(store: MemoryStore, tournament_id: str) -> Tournament:
    doc = store.get(TOURNAMENTS, tournament_id)
    if doc is None:
        raise NotFoundError('Tournament not found')
    return Tournament.from_doc(doc)


def list_tournaments(
    store: MemoryStore,
    season: Optional[int] = None,
    status: Optional[str | set[str]] = None,
) -> list[Tournament]:
    """Tournaments newest first, optionally filtered by season and status."""
    query: dict[str, Any] = {}
    if season is not None:
        query['season'] = season
    if status is not None:
        query['status'] = status
    docs = store.find(TOURNAMENTS, query, sort_by='start_date', descending=True)
    return [Tournament.from_doc(d) for d in docs]


def update_tournament(
    store: MemoryStore,
    tournament_id: str,
    data: TournamentUpdate | dict,
    cache: Optional[Cache] = None,
) -> Tournament:
    """
    Apply a partial edit.

    A type change re-derives the multiplier. Changing the type, scoring
    format or multi-day flag recalculates every stored score of the
    tournament; name, date and status edits never do.

    Raises:
        NotFoundError: Tournament does not exist
    """
    request = parse_request(TournamentUpdate, data)
    current = store.get(TOURNAMENTS, tournament_id)
    if current is None:
        raise NotFoundError('Tournament not found')

    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    if 'tournament_type' in changes:
        changes['multiplier'] = multiplier_for_type(changes['tournament_type'])
    scoring_format = changes.get('scoring_format', current.get('scoring_format'))
    resolved = resolve_scoring_format(changes.get('tournament_type', current.get('tournament_type')), scoring_format)
    if 'scoring_format' in changes or resolved != current.get('scoring_format'):
        changes['scoring_format'] = resolved
    changes['updated_at'] = datetime.now()

    doc = store.update(TOURNAMENTS, tournament_id, changes)

    if any(field in changes and changes[field] != current.get(field) for field in SCORING_FIELDS):
        count = recalculate_scores_for_tournament(store, tournament_id, cache=cache)
        logger.info(f"Scoring config of {doc['name']} changed, recalculated {count} scores")

    invalidate_leaderboards(cache, doc['season'])
    if current['season'] != doc['season']:
        invalidate_leaderboards(cache, current['season'])
    return Tournament.from_doc(doc)


def publish_tournament(store: MemoryStore, tournament_id: str, cache: Optional[Cache] = None) -> Tournament:
    return update_tournament(store, tournament_id, {'status': 'published'}, cache=cache)


def complete_tournament(store: MemoryStore, tournament_id: str, cache: Optional[Cache] = None) -> Tournament:
    return update_tournament(store, tournament_id, {'status': 'complete'}, cache=cache)


def delete_tournament(store: MemoryStore, tournament_id: str, cache: Optional[Cache] = None) -> bool:
    """Delete a tournament together with its scores."""
    doc = store.get(TOURNAMENTS, tournament_id)
    if doc is None:
        return False
    removed = delete_scores_for_tournament(store, tournament_id, cache=cache)
    store.delete(TOURNAMENTS, tournament_id)
    invalidate_leaderboards(cache, doc['season'])
    logger.info(f"Deleted tournament {doc['name']} and {removed} scores")
    return True
