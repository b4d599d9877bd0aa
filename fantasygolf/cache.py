"""
Advisory key/value cache with TTLs.

The cache never changes results: every failure (backend unavailable, bad
payload) is logged at DEBUG and treated as a miss, and callers pass
``cache=None`` to skip it entirely.

Key layout::

    <prefix>v1:cache:leaderboard:{simple|full|tournament|period}:<season>[:<id>]
    <prefix>v1:cache:settings:<key>
    <prefix>v1:cache:season:active
"""

import logging
import time
from typing import Any, Callable, Optional, Protocol, TypeVar

import redis

from .config import get_cache_key_prefix
from .utils import dumps, loads

logger = logging.getLogger('fantasygolf.cache')

T = TypeVar('T')

CACHE_ERRORS = (redis.RedisError, OSError, TypeError, ValueError, KeyError)
LEADERBOARD_VIEWS = ('simple', 'full', 'tournament', 'period')


class Cache(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_prefix(self, prefix: str) -> int: ...


class MemoryCache:
    """Process-local cache. ``clock`` is injectable for expiry tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: str, ttl: int) -> None:
        self._data[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in self._data if k.startswith(prefix)]
        for key in keys:
            del self._data[key]
        return len(keys)

    def keys(self) -> list[str]:
        return list(self._data)


class RedisCache:
    """
    Redis-backed cache.

    Example:
        cache = RedisCache.from_url('redis://localhost:6379/0')
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout: float = 5) -> 'RedisCache':
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def set(self, key: str, value: str, ttl: int) -> None:
        self.client.setex(key, ttl, value)

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        batch = []
        for key in self.client.scan_iter(match=f'{prefix}*', count=500):
            batch.append(key)
            if len(batch) >= 500:
                deleted += self.client.delete(*batch)
                batch = []
        if batch:
            deleted += self.client.delete(*batch)
        return deleted


def cache_key(*parts: Any) -> str:
    """Namespace ``parts`` under the configured prefix."""
    return get_cache_key_prefix() + 'v1:cache:' + ':'.join(str(p) for p in parts)


def leaderboard_key(view: str, season: Optional[int] = None, *parts: Any) -> str:
    if season is None:
        return cache_key('leaderboard', view)
    return cache_key('leaderboard', view, season, *parts)


def leaderboard_prefix(season: Optional[int] = None) -> list[str]:
    """Prefixes covering every cached leaderboard view of ``season`` (all seasons when None)."""
    if season is None:
        return [cache_key('leaderboard', '')]
    return [leaderboard_key(view, season) for view in LEADERBOARD_VIEWS]


def settings_key(key: str) -> str:
    return cache_key('settings', key)


def active_season_key() -> str:
    return cache_key('season', 'active')


def memoize(
    cache: Optional[Cache],
    key: str,
    loader: Callable[[], T],
    ttl: int,
    dump: Optional[Callable[[T], Any]] = None,
    load: Optional[Callable[[Any], T]] = None,
) -> T:
    """
    Return the cached value for ``key`` or compute, store and return it.

    Args:
        cache: Cache backend, or None to always compute
        key: Full cache key
        loader: Computes the authoritative value
        ttl: Seconds to keep the value
        dump: Converts the value to JSON-compatible data before storing
        load: Rebuilds the value from the stored data

    Example:
        board = memoize(cache, leaderboard_key('simple', 2026), build, ttl=60,
                        dump=dump_entries, load=load_entries)
    """
    if cache is None:
        return loader()

    try:
        raw = cache.get(key)
        if raw is not None:
            data = loads(raw)
            logger.debug(f'Cache hit: {key}')
            return load(data) if load else data
    except CACHE_ERRORS as e:
        logger.debug(f'Cache read failed for {key}, computing: {e}')

    logger.debug(f'Cache miss: {key}')
    value = loader()

    try:
        cache.set(key, dumps(dump(value) if dump else value), ttl)
    except CACHE_ERRORS as e:
        logger.debug(f'Cache write failed for {key}: {e}')

    return value


def invalidate(cache: Optional[Cache], key: str) -> None:
    if cache is None:
        return
    try:
        cache.delete(key)
    except CACHE_ERRORS as e:
        logger.debug(f'Cache delete failed for {key}: {e}')


def invalidate_prefix(cache: Optional[Cache], prefix: str | list[str]) -> int:
    """Delete every key under ``prefix`` (or each of a list of prefixes)."""
    if cache is None:
        return 0
    prefixes = [prefix] if isinstance(prefix, str) else prefix
    deleted = 0
    for p in prefixes:
        try:
            deleted += cache.delete_prefix(p)
        except CACHE_ERRORS as e:
            logger.debug(f'Cache prefix delete failed for {p}: {e}')
    return deleted


def invalidate_leaderboards(cache: Optional[Cache], season: Optional[int] = None) -> None:
    deleted = invalidate_prefix(cache, leaderboard_prefix(season))
    if cache is not None:
        logger.debug(f'Invalidated {deleted} leaderboard cache entries for season {season}')
