"""Tests for season management and league settings."""

from datetime import datetime

import pytest

from fantasygolf.cache import leaderboard_key, settings_key
from fantasygolf.constants import SEASONS
from fantasygolf.errors import NotFoundError, StateError, ValidationError
from fantasygolf.seasons import (
    create_season,
    current_season_number,
    delete_season,
    find_season_for_date,
    get_active_season,
    get_season,
    list_seasons,
    set_active_season,
    update_season,
)
from fantasygolf.settings import get_setting, get_settings, load_league_settings, set_setting


def _season(store, year, active=False):
    return create_season(store, {
        'name': str(year),
        'start_date': datetime(year, 1, 1),
        'end_date': datetime(year, 12, 31),
        'is_active': active,
    })


class TestSeasons:
    """Exactly one active season."""

    def test_creating_active_season_deactivates_others(self, store):
        """Test a new active season takes over."""
        _season(store, 2025, active=True)
        _season(store, 2026, active=True)
        active = [d['name'] for d in store.find(SEASONS, {'is_active': True})]
        assert active == ['2026']

    def test_set_active_season(self, store, cache):
        """Test switching the active season, cached lookup included."""
        old = _season(store, 2025)
        _season(store, 2026, active=True)
        assert get_active_season(store, cache=cache).name == '2026'
        set_active_season(store, old.id, cache=cache)
        assert get_active_season(store, cache=cache).name == '2025'
        assert store.count(SEASONS, {'is_active': True}) == 1

    def test_cannot_delete_active(self, store):
        """Test the active season is protected."""
        active = _season(store, 2026, active=True)
        with pytest.raises(StateError, match='Cannot delete the active season'):
            delete_season(store, active.id)

    def test_delete_and_lookup(self, store):
        """Test deleting an inactive season and looking up missing ones."""
        season = _season(store, 2024)
        delete_season(store, season.id)
        with pytest.raises(NotFoundError, match='Season not found'):
            get_season(store, season.id)

    def test_update(self, store):
        """Test editing season dates."""
        season = _season(store, 2026)
        updated = update_season(store, season.id, {'end_date': datetime(2026, 11, 30)})
        assert updated.end_date == datetime(2026, 11, 30)

    def test_invalid_name(self, store):
        """Test season names are four-digit years."""
        with pytest.raises(ValidationError):
            create_season(store, {'name': '26', 'start_date': datetime(2026, 1, 1), 'end_date': datetime(2026, 12, 31)})

    def test_find_season_for_date(self, store):
        """Test dates map to the season containing them, inclusive."""
        _season(store, 2025)
        _season(store, 2026)
        seasons = list_seasons(store)
        assert [s.name for s in seasons] == ['2026', '2025']
        assert find_season_for_date(seasons, datetime(2025, 12, 31)).name == '2025'
        assert find_season_for_date(seasons, datetime(2030, 1, 1)) is None


class TestCurrentSeason:
    """Resolving the season when none is named."""

    def test_active_season_wins(self, store):
        """Test the active season's year is used."""
        _season(store, 2025, active=True)
        set_setting(store, 'current_season', 2024)
        assert current_season_number(store) == 2025

    def test_setting_fallback(self, store):
        """Test the current_season setting applies without an active season."""
        set_setting(store, 'current_season', 2024)
        assert current_season_number(store) == 2024

    def test_calendar_year_fallback(self, store):
        """Test the calendar year is the last resort."""
        assert current_season_number(store) == datetime.now().year


class TestSettings:
    """Cached key/value settings."""

    def test_defaults(self, store):
        """Test unset keys return their built-in defaults."""
        assert get_setting(store, 'transfers_open') is False
        assert get_setting(store, 'allow_new_team_creation') is True
        assert get_setting(store, 'unknown', default='x') == 'x'

    def test_write_invalidates_cached_value(self, store, cache):
        """Test a cached setting is refreshed after a write."""
        assert get_setting(store, 'transfers_open', cache=cache) is False
        set_setting(store, 'transfers_open', True, cache=cache)
        assert get_setting(store, 'transfers_open', cache=cache) is True

    def test_leaderboard_settings_invalidate_boards(self, store, cache):
        """Test changing a leaderboard-affecting setting clears cached boards."""
        cache.set(leaderboard_key('simple', 2026), '[]', 60)
        set_setting(store, 'max_transfers_per_week', 2, cache=cache)
        assert cache.get(leaderboard_key('simple', 2026)) == '[]'
        set_setting(store, 'transfers_open', True, cache=cache)
        assert cache.get(leaderboard_key('simple', 2026)) is None
        assert cache.get(settings_key('transfers_open')) is None

    def test_league_settings(self, store, season_2026):
        """Test the assembled league state."""
        set_setting(store, 'transfers_open', True)
        set_setting(store, 'max_transfers_per_week', 3)
        settings = load_league_settings(store)
        assert settings.transfers_open is True
        assert settings.allow_new_team_creation is True
        assert settings.max_transfers_per_week == 3
        assert settings.current_season == 2026
        assert get_settings(store)['max_transfers_per_week'] == 3
