"""Shared fixtures: an in-memory league with one season, golfers and users."""

from datetime import datetime

import pytest

from fantasygolf.cache import MemoryCache
from fantasygolf.constants import PICKS, USERS
from fantasygolf.golfers import create_golfer
from fantasygolf.seasons import create_season
from fantasygolf.store import MemoryStore
from fantasygolf.tournaments import create_tournament


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def season_2026(store):
    """Active 2026 season running the calendar year."""
    return create_season(store, {
        'name': '2026',
        'start_date': datetime(2026, 1, 1),
        'end_date': datetime(2026, 12, 31, 23, 59),
        'is_active': True,
        'status': 'active',
    })


@pytest.fixture
def golfers(store):
    """Seven golfers priced at 5M each (g1..g7 by list index + 1)."""
    names = [
        ('Ann', 'Lee'), ('Bob', 'Stone'), ('Cara', 'Jones'), ('Dan', 'Ray'),
        ('Eve', 'Hart'), ('Finn', 'Cole'), ('Gus', 'Park'),
    ]
    return [
        create_golfer(store, {'first_name': first, 'last_name': last, 'price': 5_000_000})
        for first, last in names
    ]


def add_user(store, user_id, username):
    return store.insert(USERS, {'id': user_id, 'username': username, 'first_name': username.title(), 'last_name': ''})


def add_pick(store, user_id, golfer_ids, captain_id=None, season=2026, created_at=datetime(2026, 1, 1)):
    """Insert a team directly, bypassing transfer rules."""
    return store.insert(PICKS, {
        'user_id': user_id,
        'season': season,
        'golfer_ids': list(golfer_ids),
        'captain_id': captain_id,
        'total_spent': 5_000_000 * len(golfer_ids),
        'created_at': created_at,
        'updated_at': created_at,
    })


def add_tournament(store, name, when, tournament_type='rollup_stableford', status='published', season=2026, **extra):
    return create_tournament(store, {
        'name': name,
        'start_date': when,
        'end_date': when,
        'season': season,
        'tournament_type': tournament_type,
        'status': status,
        **extra,
    })
