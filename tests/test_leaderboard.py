"""Tests for leaderboard ranking, windows and caching."""

from datetime import datetime

import pytest
import redis

from conftest import add_pick, add_tournament, add_user
from fantasygolf.errors import NotFoundError, ValidationError
from fantasygolf.leaderboard import (
    get_full_leaderboard,
    get_leaderboard,
    get_period_leaderboard,
    get_tournament_leaderboard,
    rank_entries,
)
from fantasygolf.models import LeaderboardRow
from fantasygolf.scores import enter_score
from fantasygolf.team import get_my_team
from fantasygolf.tournaments import complete_tournament, get_tournament, list_tournaments, publish_tournament

REFERENCE = datetime(2026, 3, 16)


class BrokenCache:
    """Cache whose backend is unreachable."""

    def get(self, key):
        raise redis.ConnectionError('down')

    def set(self, key, value, ttl):
        raise redis.ConnectionError('down')

    def delete(self, key):
        raise redis.ConnectionError('down')

    def delete_prefix(self, prefix):
        raise redis.ConnectionError('down')


@pytest.fixture
def league(store, season_2026, golfers):
    """
    Three users: alice (captain g1), bruno (captain g7) and carla (no team).

    One rollup on Sunday 15 March: g1 wins with 36 (13), g7 second with
    30 (7), g2 third with 32 (6). Alice scores 26 + 6 = 32, Bruno 6 + 14 = 20.
    """
    ids = [g.id for g in golfers]
    for user_id in ('alice', 'bruno', 'carla'):
        add_user(store, user_id, user_id)
    add_pick(store, 'alice', ids[:6], captain_id=ids[0])
    add_pick(store, 'bruno', ids[1:7], captain_id=ids[6])

    tournament = add_tournament(store, 'Rollup', datetime(2026, 3, 15))
    for gid, position, raw in ((ids[0], 1, 36), (ids[6], 2, 30), (ids[1], 3, 32)):
        enter_score(store, {'tournament_id': tournament.id, 'golfer_id': gid, 'position': position, 'raw_score': raw})
    return {'ids': ids, 'tournament': tournament}


def _points(entries):
    return {e.user_id: (e.points, e.rank) for e in entries}


class TestRankEntries:
    """Competition ranking and movement."""

    def test_ties_share_rank(self):
        """Test [20, 15, 15, 10] ranks as [1, 2, 2, 4]."""
        rows = [LeaderboardRow(uid, uid, pts) for uid, pts in (('a', 20), ('b', 15), ('c', 15), ('d', 10))]
        assert [e.rank for e in rank_entries(rows)] == [1, 2, 2, 4]

    def test_movement(self):
        """Test movement against a previous snapshot, including new users."""
        previous = [LeaderboardRow('a', 'a', 5), LeaderboardRow('b', 'b', 9)]
        current = [LeaderboardRow('a', 'a', 20), LeaderboardRow('b', 'b', 15), LeaderboardRow('c', 'c', 1)]
        by_id = {e.user_id: e for e in rank_entries(current, previous)}
        assert (by_id['a'].movement, by_id['a'].movement_amount, by_id['a'].previous_rank) == ('up', 1, 2)
        assert (by_id['b'].movement, by_id['b'].movement_amount) == ('down', 1)
        assert by_id['c'].movement == 'new'


class TestSeasonLeaderboard:
    """Season standings."""

    def test_every_user_ranked(self, store, league):
        """Test team totals with captains doubled, and teamless users at zero."""
        board = get_leaderboard(store, 2026, reference_date=REFERENCE)
        assert _points(board) == {'alice': (32, 1), 'bruno': (20, 2), 'carla': (0, 3)}
        assert board[0].team_value == 30_000_000
        assert board[0].tournaments_played == 1

    def test_matches_team_view(self, store, league):
        """Test a user's leaderboard total equals their team view total."""
        board = get_leaderboard(store, 2026, reference_date=REFERENCE)
        team = get_my_team(store, 'bruno', 2026, reference_date=REFERENCE)
        assert _points(board)['bruno'][0] == team.totals.season_points

    def test_defaults_to_active_season(self, store, league):
        """Test the active season is used when none is named."""
        assert _points(get_leaderboard(store)) == _points(get_leaderboard(store, 2026))

    def test_late_team_excluded(self, store, league):
        """Test a team created after the tournament scores nothing for it."""
        add_user(store, 'dora', 'dora')
        add_pick(store, 'dora', league['ids'][:6], captain_id=league['ids'][0], created_at=datetime(2026, 3, 16))
        assert _points(get_leaderboard(store, 2026))['dora'] == (0, 3)

    def test_draft_tournaments_ignored(self, store, league):
        """Test unpublished results don't count."""
        draft = add_tournament(store, 'Draft', datetime(2026, 3, 22), status='draft')
        enter_score(store, {'tournament_id': draft.id, 'golfer_id': league['ids'][6], 'position': 1, 'raw_score': 40})
        assert _points(get_leaderboard(store, 2026))['bruno'] == (20, 2)


class TestCaching:
    """The cache never changes results."""

    def test_cached_equals_uncached(self, store, cache, league):
        """Test a cache hit returns the same standings as a fresh computation."""
        fresh = get_leaderboard(store, 2026)
        get_leaderboard(store, 2026, cache=cache)
        assert get_leaderboard(store, 2026, cache=cache) == fresh

    def test_broken_cache_still_computes(self, store, league):
        """Test an unreachable cache falls back to computing."""
        assert _points(get_leaderboard(store, 2026, cache=BrokenCache()))['alice'] == (32, 1)

    def test_score_entry_invalidates(self, store, cache, league):
        """Test new scores show up immediately despite a cached board."""
        get_leaderboard(store, 2026, cache=cache)
        later = add_tournament(store, 'Later', datetime(2026, 3, 22), 'presidents_cup')
        enter_score(store, {'tournament_id': later.id, 'golfer_id': league['ids'][6], 'position': 1, 'raw_score': 36},
                    cache=cache)
        assert _points(get_leaderboard(store, 2026, cache=cache))['bruno'] == (20 + 39 * 2, 1)

    def test_full_board_cached_round_trip(self, store, cache, league):
        """Test the full board survives serialisation unchanged."""
        fresh = get_full_leaderboard(store, 2026, REFERENCE)
        get_full_leaderboard(store, 2026, REFERENCE, cache=cache)
        assert get_full_leaderboard(store, 2026, REFERENCE, cache=cache) == fresh


class TestFullLeaderboard:
    """Week, month and season in one pass."""

    def test_windows(self, store, league):
        """Test the week and month containing the reference date."""
        board = get_full_leaderboard(store, 2026, REFERENCE)
        assert board.current_month == 'March 2026'
        assert board.week_start == datetime(2026, 3, 14)
        assert _points(board.week)['alice'] == (32, 1)
        assert _points(board.month)['bruno'] == (20, 2)
        assert _points(board.season)['carla'] == (0, 3)

    def test_other_week_is_empty(self, store, league):
        """Test a week without tournaments ranks everyone level on zero."""
        board = get_full_leaderboard(store, 2026, datetime(2026, 3, 25))
        assert {e.points for e in board.week} == {0}
        assert {e.rank for e in board.week} == {1}
        assert _points(board.season)['alice'] == (32, 1)


class TestTournamentLeaderboard:
    """Single-tournament standings."""

    def test_points(self, store, league):
        """Test per-tournament totals with captains doubled."""
        board = get_tournament_leaderboard(store, league['tournament'].id)
        assert _points(board) == {'alice': (32, 1), 'bruno': (20, 2), 'carla': (0, 3)}

    def test_unpublished_is_empty(self, store, league):
        """Test a draft tournament has no standings."""
        draft = add_tournament(store, 'Draft', datetime(2026, 3, 22), status='draft')
        assert get_tournament_leaderboard(store, draft.id) == []

    def test_missing(self, store):
        """Test an unknown tournament fails with NotFound."""
        with pytest.raises(NotFoundError):
            get_tournament_leaderboard(store, 'nope')


class TestPeriodLeaderboard:
    """Week or month standings with movement."""

    def test_week_movement(self, store, league):
        """Test movement against the previous, scoreless, week."""
        by_id = {e.user_id: e for e in get_period_leaderboard(store, 'week', REFERENCE, 2026)}
        assert (by_id['alice'].rank, by_id['alice'].movement) == (1, 'same')
        assert (by_id['bruno'].movement, by_id['bruno'].movement_amount) == ('down', 1)
        assert by_id['carla'].previous_rank == 1

    def test_season_has_no_movement(self, store, league):
        """Test season standings carry no movement."""
        board = get_period_leaderboard(store, 'season', REFERENCE, 2026)
        assert all(e.movement is None for e in board)

    def test_invalid_period(self, store, league):
        """Test unknown periods are rejected."""
        with pytest.raises(ValidationError, match='Invalid period'):
            get_period_leaderboard(store, 'fortnight', REFERENCE, 2026)


class TestTournamentLifecycle:
    """Draft, published and complete tournaments on the boards."""

    def test_publish_then_complete(self, store, league):
        """Test results count once published and keep counting once complete."""
        later = add_tournament(store, 'Later', datetime(2026, 3, 22), status='draft')
        enter_score(store, {'tournament_id': later.id, 'golfer_id': league['ids'][6], 'position': 1, 'raw_score': 36})
        assert _points(get_leaderboard(store, 2026))['bruno'] == (20, 2)
        assert get_tournament_leaderboard(store, later.id) == []

        published = publish_tournament(store, later.id)
        assert published.status == 'published'
        assert _points(get_leaderboard(store, 2026))['bruno'] == (20 + 13 * 2, 1)
        assert _points(get_tournament_leaderboard(store, later.id))['bruno'] == (26, 1)

        complete_tournament(store, later.id)
        assert get_tournament(store, later.id).status == 'complete'
        assert _points(get_leaderboard(store, 2026))['bruno'] == (46, 1)

    def test_publish_invalidates_cached_board(self, store, cache, league):
        """Test publishing refreshes a cached board."""
        later = add_tournament(store, 'Later', datetime(2026, 3, 22), status='draft')
        enter_score(store, {'tournament_id': later.id, 'golfer_id': league['ids'][6], 'position': 1, 'raw_score': 36})
        get_leaderboard(store, 2026, cache=cache)
        publish_tournament(store, later.id, cache=cache)
        assert _points(get_leaderboard(store, 2026, cache=cache))['bruno'] == (46, 1)

    def test_list_tournaments(self, store, league):
        """Test listing is newest first and filters by season and status."""
        add_tournament(store, 'Draft', datetime(2026, 3, 22), status='draft')
        add_tournament(store, 'Old', datetime(2025, 6, 1), season=2025)
        assert [t.name for t in list_tournaments(store, season=2026)] == ['Draft', 'Rollup']
        assert [t.name for t in list_tournaments(store, status={'published', 'complete'})] == ['Rollup', 'Old']
        assert [t.name for t in list_tournaments(store, season=2026, status='draft')] == ['Draft']

    def test_get_missing_tournament(self, store):
        """Test an unknown tournament id fails with NotFound."""
        with pytest.raises(NotFoundError, match='Tournament not found'):
            get_tournament(store, 'nope')


class TestOffsetDates:
    """Tournament dates given with a UTC offset."""

    REFERENCE = datetime(2026, 3, 11)

    @pytest.fixture
    def utc_league(self, store, season_2026, golfers):
        ids = [g.id for g in golfers]
        add_user(store, 'alice', 'alice')
        add_pick(store, 'alice', ids[:6], captain_id=ids[0])
        tournament = add_tournament(store, 'Rollup', '2026-03-10T12:00:00Z')
        enter_score(store, {'tournament_id': tournament.id, 'golfer_id': ids[0], 'position': 1, 'raw_score': 36})
        return tournament

    def test_stored_as_local_time(self, utc_league):
        """Test an offset timestamp is stored as naive local time."""
        assert utc_league.start_date.tzinfo is None
        assert utc_league.start_date.date() in (datetime(2026, 3, 10).date(), datetime(2026, 3, 11).date())

    def test_boards_and_team_view(self, store, utc_league):
        """Test every board and the team view count the result."""
        assert _points(get_leaderboard(store, 2026, reference_date=self.REFERENCE))['alice'] == (26, 1)
        board = get_full_leaderboard(store, 2026, self.REFERENCE)
        assert _points(board.week)['alice'] == (26, 1)
        assert _points(get_period_leaderboard(store, 'week', self.REFERENCE, 2026))['alice'] == (26, 1)
        assert _points(get_tournament_leaderboard(store, utc_league.id))['alice'] == (26, 1)
        assert get_my_team(store, 'alice', 2026, reference_date=self.REFERENCE).totals.week_points == 26
