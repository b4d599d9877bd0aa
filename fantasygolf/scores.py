"""
Score entry and recalculation.

One score document per (tournament, golfer). Points are always derived from
the stored raw inputs (participated, position, raw score) and the owning
tournament's current scoring format, multi-day flag and multiplier.
"""

import logging
from datetime import datetime
from typing import Optional

from .cache import Cache, invalidate_leaderboards
from .constants import SCORED_STATUSES, SCORES, TOURNAMENTS
from .errors import NotFoundError
from .logging_config import timed
from .models import Score
from .schemas import BulkEnterScoresRequest, EnterScoreRequest, parse_request
from .scoring import compute_points
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.scores')


def get_tournament_doc(store: MemoryStore, tournament_id: str) -> dict:
    doc = store.get(TOURNAMENTS, tournament_id)
    if doc is None:
        raise NotFoundError('Tournament not found')
    return doc


def score_fields(tournament: dict, participated: bool, position: Optional[int], raw_score: Optional[int]) -> dict:
    """
    Point fields for one golfer under ``tournament``'s current configuration.

    Non-participants have position and raw score cleared whatever was passed.
    """
    if not participated:
        position = raw_score = None
    base, bonus, multiplied = compute_points(
        participated,
        position,
        raw_score,
        scoring_format=tournament.get('scoring_format') or 'stableford',
        is_multi_day=bool(tournament.get('is_multi_day', False)),
        multiplier=tournament.get('multiplier', 1),
    )
    return {
        'participated': participated,
        'position': position,
        'raw_score': raw_score,
        'base_points': base,
        'bonus_points': bonus,
        'multiplied_points': multiplied,
    }


def _upsert_op(tournament: dict, golfer_id: str, fields: dict, now: datetime) -> tuple:
    return (
        'upsert',
        {'tournament_id': tournament['id'], 'golfer_id': golfer_id},
        {**fields, 'updated_at': now},
        {'created_at': now},
    )


def enter_score(store: MemoryStore, request: EnterScoreRequest | dict, cache: Optional[Cache] = None) -> Score:
    """
    Compute and upsert one golfer's score for a tournament.

    Entering identical inputs twice leaves one document with identical point
    fields; only ``updated_at`` moves.

    Raises:
        ValidationError: Malformed request
        NotFoundError: Tournament does not exist
    """
    request = parse_request(EnterScoreRequest, request)
    tournament = get_tournament_doc(store, request.tournament_id)

    fields = score_fields(tournament, request.participated, request.position, request.raw_score)
    _, query, changes, on_insert = _upsert_op(tournament, request.golfer_id, fields, datetime.now())
    doc = store.upsert(SCORES, query, changes, on_insert=on_insert)

    invalidate_leaderboards(cache, tournament['season'])
    logger.info(
        f"Score entered: golfer {request.golfer_id} in {tournament['name']} "
        f"-> {fields['base_points']}+{fields['bonus_points']} x{tournament.get('multiplier', 1)} "
        f"= {fields['multiplied_points']}"
    )
    return Score.from_doc(doc)


def bulk_enter_scores(
    store: MemoryStore,
    request: BulkEnterScoresRequest | dict,
    cache: Optional[Cache] = None,
) -> list[Score]:
    """
    Enter a whole field's results in one batch.

    The tournament is read once and every upsert lands in a single atomic
    ``bulk_write``; a missing tournament aborts before anything is written.

    Raises:
        ValidationError: Malformed request or podium rules violated
        NotFoundError: Tournament does not exist
    """
    request = parse_request(BulkEnterScoresRequest, request)
    tournament = get_tournament_doc(store, request.tournament_id)

    now = datetime.now()
    operations = [
        _upsert_op(tournament, entry.golfer_id, score_fields(tournament, entry.participated, entry.position, entry.raw_score), now)
        for entry in request.scores
    ]
    with timed(logger, 'bulk-enter-scores', tournament=tournament['id'], count=len(operations)):
        docs = store.bulk_write(SCORES, operations)

    invalidate_leaderboards(cache, tournament['season'])
    logger.info(f"Bulk entered {len(docs)} scores for {tournament['name']}")
    return [Score.from_doc(d) for d in docs]


def recalculate_scores_for_tournament(
    store: MemoryStore,
    tournament_id: str,
    cache: Optional[Cache] = None,
) -> int:
    """
    Reapply the tournament's current configuration to its stored scores.

    Only stored inputs are used; positions and raw scores are not refetched.

    Returns:
        Number of scores rewritten (0, with no writes, when there are none)

    Raises:
        NotFoundError: Tournament does not exist
    """
    tournament = get_tournament_doc(store, tournament_id)
    scores = store.find(SCORES, {'tournament_id': tournament_id})
    if not scores:
        return 0

    now = datetime.now()
    operations = []
    for score in scores:
        fields = score_fields(tournament, bool(score.get('participated')), score.get('position'), score.get('raw_score'))
        operations.append(('update', score['id'], {
            'base_points': fields['base_points'],
            'bonus_points': fields['bonus_points'],
            'multiplied_points': fields['multiplied_points'],
            'updated_at': now,
        }))

    docs = store.bulk_write(SCORES, operations)
    invalidate_leaderboards(cache, tournament['season'])
    logger.info(f"Recalculated {len(docs)} scores for {tournament['name']} (x{tournament.get('multiplier', 1)})")
    return len(docs)


def recalculate_all(store: MemoryStore, season: Optional[int] = None, cache: Optional[Cache] = None) -> dict[str, int]:
    """
    Recalculate every tournament, optionally limited to one season.

    Returns:
        Mapping of tournament id to number of scores rewritten
    """
    query = {'season': season} if season is not None else None
    results = {}
    with timed(logger, 'recalculate-all', season=season):
        for tournament in store.find(TOURNAMENTS, query, sort_by='start_date'):
            results[tournament['id']] = recalculate_scores_for_tournament(store, tournament['id'], cache=cache)
    logger.info(f'Recalculated {sum(results.values())} scores across {len(results)} tournaments')
    return results


def get_scores_for_tournament(store: MemoryStore, tournament_id: str) -> list[Score]:
    return [Score.from_doc(d) for d in store.find(SCORES, {'tournament_id': tournament_id})]


def get_scores_for_golfer(store: MemoryStore, golfer_id: str) -> list[Score]:
    return [Score.from_doc(d) for d in store.find(SCORES, {'golfer_id': golfer_id})]


def get_published_scores(store: MemoryStore, season: Optional[int] = None) -> list[Score]:
    """Scores of published or complete tournaments."""
    query: dict = {'status': set(SCORED_STATUSES)}
    if season is not None:
        query['season'] = season
    tournament_ids = {t['id'] for t in store.find(TOURNAMENTS, query)}
    if not tournament_ids:
        return []
    return [Score.from_doc(d) for d in store.find(SCORES, {'tournament_id': tournament_ids})]


def delete_score(store: MemoryStore, score_id: str, cache: Optional[Cache] = None) -> bool:
    doc = store.get(SCORES, score_id)
    if doc is None:
        return False
    store.delete(SCORES, score_id)
    tournament = store.get(TOURNAMENTS, doc['tournament_id'])
    invalidate_leaderboards(cache, tournament['season'] if tournament else None)
    return True


def delete_scores_for_tournament(store: MemoryStore, tournament_id: str, cache: Optional[Cache] = None) -> int:
    deleted = store.delete_many(SCORES, {'tournament_id': tournament_id})
    if deleted:
        tournament = store.get(TOURNAMENTS, tournament_id)
        invalidate_leaderboards(cache, tournament['season'] if tournament else None)
    return deleted
