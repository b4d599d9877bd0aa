"""League settings: a cached key/value collection."""

import logging
from datetime import datetime
from typing import Any, Optional

from .cache import Cache, invalidate, invalidate_leaderboards, memoize, settings_key
from .config import get_config
from .constants import (
    LEADERBOARD_SETTINGS,
    SETTING_ALLOW_NEW_TEAMS,
    SETTING_MAX_PLAYERS_PER_TRANSFER,
    SETTING_MAX_TRANSFERS_PER_WEEK,
    SETTING_TRANSFERS_OPEN,
    SETTINGS,
)
from .models import LeagueSettings
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.settings')

DEFAULTS = {
    SETTING_TRANSFERS_OPEN: False,
    SETTING_ALLOW_NEW_TEAMS: True,
    SETTING_MAX_TRANSFERS_PER_WEEK: 1,
    SETTING_MAX_PLAYERS_PER_TRANSFER: 6,
}

_MISSING = {'missing': True}


def get_setting(store: MemoryStore, key: str, default: Any = None, cache: Optional[Cache] = None) -> Any:
    """
    Read one setting, falling back to ``default`` (or the built-in default).

    Lookups are memoised for ``settings_cache_ttl`` seconds; an absent key is
    cached too so repeated misses don't hit the store.
    """
    def load() -> dict:
        doc = store.find_one(SETTINGS, {'key': key})
        return {'value': doc['value']} if doc else _MISSING

    entry = memoize(cache, settings_key(key), load, get_config().settings_cache_ttl)
    if entry.get('missing'):
        return DEFAULTS.get(key) if default is None else default
    return entry['value']


def set_setting(
    store: MemoryStore,
    key: str,
    value: Any,
    cache: Optional[Cache] = None,
    now: Optional[datetime] = None,
) -> Any:
    """
    Write a setting and drop its cached value.

    Changing a setting that alters the active season's leaderboard also
    invalidates the cached leaderboards.
    """
    store.upsert(SETTINGS, {'key': key}, {'value': value, 'updated_at': now or datetime.now()})
    invalidate(cache, settings_key(key))
    if key in LEADERBOARD_SETTINGS:
        invalidate_leaderboards(cache)
    logger.info(f'Setting {key} = {value!r}')
    return value


def get_settings(store: MemoryStore) -> dict[str, Any]:
    """All settings with defaults filled in for unset keys."""
    values = dict(DEFAULTS)
    for doc in store.find(SETTINGS):
        values[doc['key']] = doc['value']
    return values


def load_league_settings(store: MemoryStore, cache: Optional[Cache] = None) -> LeagueSettings:
    """
    Assemble the league state consulted by pick validation.

    Build once per request and pass the result down, rather than reading
    individual settings at each call site.
    """
    from .seasons import current_season_number

    return LeagueSettings(
        transfers_open=bool(get_setting(store, SETTING_TRANSFERS_OPEN, cache=cache)),
        allow_new_team_creation=bool(get_setting(store, SETTING_ALLOW_NEW_TEAMS, cache=cache)),
        max_transfers_per_week=int(get_setting(store, SETTING_MAX_TRANSFERS_PER_WEEK, cache=cache)),
        max_players_per_transfer=int(get_setting(store, SETTING_MAX_PLAYERS_PER_TRANSFER, cache=cache)),
        current_season=current_season_number(store, cache=cache),
    )
