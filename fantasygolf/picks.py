"""Team selection and transfers."""

import logging
from datetime import datetime
from typing import Optional

from .cache import Cache, invalidate_leaderboards
from .config import get_budget_cap, get_roster_size
from .constants import (
    GOLFERS,
    PICK_HISTORY,
    PICKS,
    SETTING_ALLOW_NEW_TEAMS,
    SETTING_MAX_TRANSFERS_PER_WEEK,
    SETTING_TRANSFERS_OPEN,
)
from .dates import week_end, week_start
from .errors import StateError, ValidationError
from .models import LeagueSettings, Pick, PickHistory
from .store import MemoryStore
from .validators import validate_roster

logger = logging.getLogger('fantasygolf.picks')

INITIAL_PICK_REASON = 'Initial pick'


def validate_picks(
    golfer_ids: list[str],
    captain_id: Optional[str],
    prices: dict[str, int],
    settings: LeagueSettings,
    previous_ids: Optional[list[str]] = None,
) -> int:
    """
    Check a selection against the roster rules.

    Args:
        golfer_ids: Selected golfer ids
        captain_id: Optional captain id
        prices: Price of every known golfer
        settings: League state for this request
        previous_ids: Current roster when this is a transfer

    Returns:
        Total price of the selection

    Raises:
        ValidationError: Naming the first violated rule
    """
    errors = validate_roster(
        golfer_ids,
        captain_id,
        prices,
        roster_size=get_roster_size(),
        budget_cap=get_budget_cap(),
    )
    if not errors and previous_ids is not None:
        changed = len(set(golfer_ids) - set(previous_ids))
        if changed > settings.max_players_per_transfer:
            errors = [f'You can change at most {settings.max_players_per_transfer} golfers per transfer']
    if errors:
        raise ValidationError(errors[0], errors=errors)
    return sum(prices[gid] for gid in golfer_ids)


def transfers_this_week(store: MemoryStore, user_id: str, season: int, now: datetime) -> int:
    """Transfers (not the initial pick) saved in the gameweek containing ``now``."""
    start, end = week_start(now), week_end(now)
    return sum(
        1 for h in store.find(PICK_HISTORY, {'user_id': user_id, 'season': season})
        if h['reason'] != INITIAL_PICK_REASON and start <= h['changed_at'] <= end
    )


def get_user_pick(store: MemoryStore, user_id: str, season: int) -> Optional[Pick]:
    doc = store.find_one(PICKS, {'user_id': user_id, 'season': season})
    return Pick.from_doc(doc) if doc else None


def get_pick_history(store: MemoryStore, user_id: str, season: Optional[int] = None) -> list[PickHistory]:
    """Audit rows, newest first."""
    query: dict = {'user_id': user_id}
    if season is not None:
        query['season'] = season
    docs = store.find(PICK_HISTORY, query, sort_by='changed_at', descending=True)
    return [PickHistory.from_doc(d) for d in docs]


def save_picks(
    store: MemoryStore,
    user_id: str,
    golfer_ids: list[str],
    captain_id: Optional[str],
    settings: LeagueSettings,
    reason: str = 'Team selection',
    now: Optional[datetime] = None,
    cache: Optional[Cache] = None,
) -> Pick:
    """
    Save a user's team for ``settings.current_season``.

    An existing team may only change while transfers are open; a first team
    only while new-team creation is allowed. Every save appends a history
    row and the pick keeps its original ``created_at``. Transfers are also
    capped per gameweek and in how many golfers they swap.

    Raises:
        StateError: Transfers locked, new teams disabled or weekly limit used
        ValidationError: Roster size, duplicates, unknown golfers, captain,
            budget or too many golfers swapped
    """
    season = settings.current_season
    existing = get_user_pick(store, user_id, season)

    if existing is not None and not settings.transfers_open:
        raise StateError('Transfers are currently locked', setting=SETTING_TRANSFERS_OPEN)
    if existing is None and not settings.allow_new_team_creation:
        raise StateError('New team creation is currently disabled', setting=SETTING_ALLOW_NEW_TEAMS)

    now = now or datetime.now()
    if existing is not None and transfers_this_week(store, user_id, season, now) >= settings.max_transfers_per_week:
        raise StateError(
            f'Transfer limit of {settings.max_transfers_per_week} per week reached',
            setting=SETTING_MAX_TRANSFERS_PER_WEEK,
        )

    golfers = store.find(GOLFERS, {'id': set(golfer_ids)}) if golfer_ids else []
    prices = {g['id']: g.get('price', 0) for g in golfers}
    previous_ids = existing.golfer_ids if existing else None
    total_spent = validate_picks(golfer_ids, captain_id, prices, settings, previous_ids=previous_ids)

    store.insert(PICK_HISTORY, {
        'user_id': user_id,
        'season': season,
        'golfer_ids': list(golfer_ids),
        'captain_id': captain_id,
        'total_spent': total_spent,
        'reason': reason if existing else INITIAL_PICK_REASON,
        'changed_at': now,
    })
    doc = store.upsert(
        PICKS,
        {'user_id': user_id, 'season': season},
        {'golfer_ids': list(golfer_ids), 'captain_id': captain_id, 'total_spent': total_spent, 'updated_at': now},
        on_insert={'created_at': now},
    )

    invalidate_leaderboards(cache, season)
    action = 'Transfer' if existing else 'New team'
    logger.info(f'{action} saved for user {user_id} in {season}: {total_spent:,} spent')
    return Pick.from_doc(doc)
