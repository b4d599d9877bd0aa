"""Season management. Exactly one season is active at a time."""

import logging
from datetime import datetime
from typing import Any, Optional

from .cache import Cache, active_season_key, invalidate, invalidate_leaderboards, memoize
from .config import get_config
from .constants import SEASONS, SETTING_CURRENT_SEASON
from .errors import NotFoundError, StateError
from .models import Season
from .schemas import SeasonCreate, SeasonUpdate, parse_request
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.seasons')


def list_seasons(store: MemoryStore) -> list[Season]:
    """All seasons, newest start date first."""
    return [Season.from_doc(d) for d in store.find(SEASONS, sort_by='start_date', descending=True)]


def get_season(store: MemoryStore, season_id: str) -> Season:
    doc = store.get(SEASONS, season_id)
    if doc is None:
        raise NotFoundError('Season not found')
    return Season.from_doc(doc)


def get_season_by_name(store: MemoryStore, name: str | int) -> Optional[Season]:
    name = str(name).strip().lower()
    for doc in store.find(SEASONS):
        if doc['name'].lower() == name:
            return Season.from_doc(doc)
    return None


def find_season_for_date(seasons: list[Season], when: datetime) -> Optional[Season]:
    """First season whose start/end dates contain ``when`` (inclusive)."""
    for season in seasons:
        if season.start_date <= when <= season.end_date:
            return season
    return None


def get_active_season(store: MemoryStore, cache: Optional[Cache] = None) -> Optional[Season]:
    """The active season, memoised for ``active_season_cache_ttl`` seconds."""
    def load() -> Optional[dict]:
        return store.find_one(SEASONS, {'is_active': True})

    doc = memoize(cache, active_season_key(), load, get_config().active_season_cache_ttl)
    return Season.from_doc(doc) if doc else None


def current_season_number(store: MemoryStore, cache: Optional[Cache] = None) -> int:
    """
    Season year used when a caller does not name one.

    The active season's name wins, then the ``current_season`` setting, then
    the current calendar year.
    """
    from .settings import get_setting

    active = get_active_season(store, cache=cache)
    if active is not None and active.name.isdigit():
        return active.year
    configured = get_setting(store, SETTING_CURRENT_SEASON, cache=cache)
    if configured:
        return int(configured)
    return datetime.now().year


def _season_changed(cache: Optional[Cache]) -> None:
    invalidate(cache, active_season_key())
    invalidate_leaderboards(cache)


def _deactivate_others(store: MemoryStore, keep_id: Optional[str] = None) -> list[tuple]:
    return [
        ('update', doc['id'], {'is_active': False})
        for doc in store.find(SEASONS, {'is_active': True})
        if doc['id'] != keep_id
    ]


def create_season(store: MemoryStore, data: SeasonCreate | dict, cache: Optional[Cache] = None) -> Season:
    request = parse_request(SeasonCreate, data)
    now = datetime.now()
    doc = {**request.model_dump(), 'created_at': now, 'updated_at': now}

    if request.is_active:
        operations = _deactivate_others(store) + [('insert', doc)]
        written = store.bulk_write(SEASONS, operations)[-1]
        _season_changed(cache)
    else:
        written = store.insert(SEASONS, doc)

    logger.info(f"Created season {written['name']}")
    return Season.from_doc(written)


def update_season(
    store: MemoryStore,
    season_id: str,
    data: SeasonUpdate | dict,
    cache: Optional[Cache] = None,
) -> Season:
    request = parse_request(SeasonUpdate, data)
    changes: dict[str, Any] = request.model_dump(exclude_unset=True)
    changes['updated_at'] = datetime.now()

    doc = store.update(SEASONS, season_id, changes)
    if doc is None:
        raise NotFoundError('Season not found')
    _season_changed(cache)
    return Season.from_doc(doc)


def set_active_season(store: MemoryStore, season_id: str, cache: Optional[Cache] = None) -> Season:
    """Activate one season and deactivate every other in a single batch."""
    if store.get(SEASONS, season_id) is None:
        raise NotFoundError('Season not found')

    now = datetime.now()
    operations = _deactivate_others(store, keep_id=season_id)
    operations.append(('update', season_id, {'is_active': True, 'updated_at': now}))
    doc = store.bulk_write(SEASONS, operations)[-1]

    _season_changed(cache)
    logger.info(f"Season {doc['name']} is now active")
    return Season.from_doc(doc)


def delete_season(store: MemoryStore, season_id: str, cache: Optional[Cache] = None) -> None:
    doc = store.get(SEASONS, season_id)
    if doc is None:
        raise NotFoundError('Season not found')
    if doc.get('is_active'):
        raise StateError('Cannot delete the active season', setting='is_active')
    store.delete(SEASONS, season_id)
    _season_changed(cache)
