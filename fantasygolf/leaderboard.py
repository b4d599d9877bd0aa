"""
Leaderboards: competition ranking of every user's team points.

Every known user appears; users without a team score 0. Team points come from
the team aggregation (captain doubling, team effective start), so a user's
leaderboard total always matches their team view. Results are memoised per
season and view and invalidated by prefix whenever scores change.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .cache import Cache, leaderboard_key, memoize
from .config import get_captain_multiplier, get_config
from .constants import GOLFERS, PICKS, SCORED_STATUSES, SCORES, SEASONS, TOURNAMENTS, USERS
from .dates import (
    format_date_string,
    is_date_in_period,
    month_end,
    month_start,
    previous_month_start,
    season_start,
    team_effective_start,
    to_naive,
    week_end,
    week_start,
)
from .errors import NotFoundError, ValidationError
from .logging_config import timed
from .models import (
    FullLeaderboard,
    Golfer,
    GolferWithScores,
    LeaderboardRow,
    Pick,
    RankedEntry,
    Score,
    Tournament,
    User,
)
from .seasons import current_season_number
from .store import MemoryStore
from .team import get_team_golfer_scores

logger = logging.getLogger('fantasygolf.leaderboard')

PERIODS = ('week', 'month', 'season')


def rank_entries(
    current: list[LeaderboardRow],
    previous: Optional[list[LeaderboardRow]] = None,
) -> list[RankedEntry]:
    """
    Sort by points and assign competition ranks, e.g. [20, 15, 15, 10] -> [1, 2, 2, 4].

    With a previous-period snapshot, each entry also gets its movement:
    'up', 'down', 'same', or 'new' for users absent from the snapshot.

    Example:
        >>> [e.rank for e in rank_entries([LeaderboardRow('a', 'a', 20), LeaderboardRow('b', 'b', 15)])]
        [1, 2]
    """
    ordered = sorted(current, key=lambda row: row.points, reverse=True)
    ranked = []
    rank = 1
    for index, row in enumerate(ordered):
        if index > 0 and row.points < ordered[index - 1].points:
            rank = index + 1
        ranked.append(RankedEntry.from_row(row, rank))

    if previous is None:
        return ranked

    previous_ranks = {entry.user_id: entry.rank for entry in rank_entries(previous)}
    for entry in ranked:
        old = previous_ranks.get(entry.user_id)
        entry.previous_rank = old
        if old is None:
            entry.movement = 'new'
        elif old > entry.rank:
            entry.movement = 'up'
        elif old < entry.rank:
            entry.movement = 'down'
        else:
            entry.movement = 'same'
        entry.movement_amount = abs(old - entry.rank) if old is not None else 0
    return ranked


@dataclass
class _SeasonData:
    """Everything needed to score every team of a season, fetched once."""
    season: int
    season_start: datetime
    users: list[User]
    picks: dict[str, Pick]
    golfers: dict[str, Golfer]
    tournaments: list[Tournament]
    scores_by_golfer: dict[str, list[Score]] = field(default_factory=dict)


def _load_season(store: MemoryStore, season: int, tournament_ids: Optional[set[str]] = None) -> _SeasonData:
    season_doc = store.find_one(SEASONS, {'name': str(season)})
    picks = {d['user_id']: Pick.from_doc(d) for d in store.find(PICKS, {'season': season})}
    users = [User.from_doc(d) for d in store.find(USERS, sort_by='username')]

    query = {'season': season, 'status': set(SCORED_STATUSES)}
    tournaments = [Tournament.from_doc(d) for d in store.find(TOURNAMENTS, query)]
    if tournament_ids is not None:
        tournaments = [t for t in tournaments if t.id in tournament_ids]

    golfer_ids = {gid for p in picks.values() for gid in p.golfer_ids}
    golfers = {d['id']: Golfer.from_doc(d) for d in store.find(GOLFERS, {'id': golfer_ids})} if golfer_ids else {}

    scores_by_golfer: dict[str, list[Score]] = {}
    ids = {t.id for t in tournaments}
    if ids and golfer_ids:
        for doc in store.find(SCORES, {'tournament_id': ids, 'golfer_id': golfer_ids}):
            scores_by_golfer.setdefault(doc['golfer_id'], []).append(Score.from_doc(doc))

    return _SeasonData(
        season=season,
        season_start=season_doc['start_date'] if season_doc else season_start(season),
        users=users,
        picks=picks,
        golfers=golfers,
        tournaments=tournaments,
        scores_by_golfer=scores_by_golfer,
    )


def _team_scores(data: _SeasonData, pick: Pick, window_start: datetime, window_end: datetime) -> list[GolferWithScores]:
    golfers = [data.golfers[gid] for gid in pick.golfer_ids if gid in data.golfers]
    scores = [s for g in golfers for s in data.scores_by_golfer.get(g.id, [])]
    return get_team_golfer_scores(
        golfers,
        data.tournaments,
        scores,
        data.season_start,
        pick.captain_id,
        window_start,
        window_end,
        team_effective_start(pick.created_at),
    )


def _played(golfers: list[GolferWithScores], scores_attr: str) -> int:
    return len({s.tournament_id for g in golfers for s in getattr(g, scores_attr) if s.participated})


def _row(user: User, pick: Optional[Pick], points: int, played: int = 0) -> LeaderboardRow:
    return LeaderboardRow(
        user_id=user.id,
        username=user.username,
        points=points,
        first_name=user.first_name,
        last_name=user.last_name,
        team_value=pick.total_spent if pick else 0,
        tournaments_played=played,
    )


def _window_rows(data: _SeasonData, period: str, reference_date: datetime) -> list[LeaderboardRow]:
    """One row per user with points for the week, month or season containing ``reference_date``."""
    if period == 'month':
        window_start, window_end = month_start(reference_date), month_end(reference_date)
    else:
        window_start, window_end = week_start(reference_date), week_end(reference_date)

    rows = []
    for user in data.users:
        pick = data.picks.get(user.id)
        if pick is None:
            rows.append(_row(user, None, 0))
            continue
        golfers = _team_scores(data, pick, window_start, window_end)
        if period == 'week':
            points = sum(g.week_points for g in golfers)
            played = _played(golfers, 'week_scores')
        elif period == 'month':
            points = sum(g.month_points for g in golfers)
            played = len({s.tournament_id for g in golfers for s in g.season_scores
                          if s.participated and is_date_in_period(s.tournament_date, window_start, window_end)})
        else:
            points = sum(g.season_points for g in golfers)
            played = _played(golfers, 'season_scores')
        rows.append(_row(user, pick, points, played))
    return rows


def _dump_entries(entries: list[RankedEntry]) -> list[dict]:
    return [asdict(e) for e in entries]


def _load_entries(data: list[dict]) -> list[RankedEntry]:
    return [RankedEntry(**d) for d in data]


def _resolve_season(store: MemoryStore, season: Optional[int], cache: Optional[Cache]) -> int:
    return season if season is not None else current_season_number(store, cache=cache)


def get_leaderboard(
    store: MemoryStore,
    season: Optional[int] = None,
    cache: Optional[Cache] = None,
    reference_date: Optional[datetime] = None,
) -> list[RankedEntry]:
    """Season standings for every user (current season by default)."""
    season = _resolve_season(store, season, cache)
    reference_date = reference_date or datetime.now()

    def build() -> list[RankedEntry]:
        with timed(logger, 'leaderboard', season=season):
            data = _load_season(store, season)
            return rank_entries(_window_rows(data, 'season', reference_date))

    return memoize(cache, leaderboard_key('simple', season), build, get_config().leaderboard_cache_ttl,
                   dump=_dump_entries, load=_load_entries)


def get_full_leaderboard(
    store: MemoryStore,
    season: Optional[int] = None,
    reference_date: Optional[datetime] = None,
    cache: Optional[Cache] = None,
) -> FullLeaderboard:
    """
    Week, month and season standings in one pass, each ranked independently.

    The week is the gameweek containing ``reference_date`` (default now); the
    month is the calendar month that week starts in.
    """
    season = _resolve_season(store, season, cache)
    reference_date = reference_date or datetime.now()
    selected_start, selected_end = week_start(reference_date), week_end(reference_date)

    def build() -> FullLeaderboard:
        with timed(logger, 'full-leaderboard', season=season):
            data = _load_season(store, season)
            week_rows, month_rows, season_rows = [], [], []
            for user in data.users:
                pick = data.picks.get(user.id)
                if pick is None:
                    for rows in (week_rows, month_rows, season_rows):
                        rows.append(_row(user, None, 0))
                    continue
                golfers = _team_scores(data, pick, selected_start, selected_end)
                first, last = month_start(selected_start), month_end(selected_start)
                month_played = len({s.tournament_id for g in golfers for s in g.season_scores
                                    if s.participated and first <= s.tournament_date <= last})
                week_rows.append(_row(user, pick, sum(g.week_points for g in golfers), _played(golfers, 'week_scores')))
                month_rows.append(_row(user, pick, sum(g.month_points for g in golfers), month_played))
                season_rows.append(_row(user, pick, sum(g.season_points for g in golfers), _played(golfers, 'season_scores')))
            return FullLeaderboard(
                season=rank_entries(season_rows),
                month=rank_entries(month_rows),
                week=rank_entries(week_rows),
                current_month=selected_start.strftime('%B %Y'),
                week_start=selected_start,
                week_end=selected_end,
            )

    def dump(board: FullLeaderboard) -> dict:
        return asdict(board)

    def load(raw: dict) -> FullLeaderboard:
        return FullLeaderboard(
            season=_load_entries(raw['season']),
            month=_load_entries(raw['month']),
            week=_load_entries(raw['week']),
            current_month=raw['current_month'],
            week_start=raw['week_start'],
            week_end=raw['week_end'],
        )

    key = leaderboard_key('full', season, format_date_string(selected_start))
    return memoize(cache, key, build, get_config().leaderboard_cache_ttl, dump=dump, load=load)


def get_tournament_leaderboard(
    store: MemoryStore,
    tournament_id: str,
    season: Optional[int] = None,
    cache: Optional[Cache] = None,
) -> list[RankedEntry]:
    """
    Standings for a single tournament's points.

    Empty until the tournament is published or complete. Teams created after
    the tournament score nothing for it.

    Raises:
        NotFoundError: Tournament does not exist
    """
    doc = store.get(TOURNAMENTS, tournament_id)
    if doc is None:
        raise NotFoundError('Tournament not found')
    if doc['status'] not in SCORED_STATUSES:
        return []
    season = season if season is not None else doc['season']

    def build() -> list[RankedEntry]:
        tournament = Tournament.from_doc(doc)
        picks = {d['user_id']: Pick.from_doc(d) for d in store.find(PICKS, {'season': season})}
        points = {s['golfer_id']: s.get('multiplied_points', 0) for s in store.find(SCORES, {'tournament_id': tournament_id})}
        played = {s['golfer_id'] for s in store.find(SCORES, {'tournament_id': tournament_id, 'participated': True})}
        captain_multiplier = get_captain_multiplier()

        rows = []
        for user in (User.from_doc(d) for d in store.find(USERS, sort_by='username')):
            pick = picks.get(user.id)
            if pick is None or to_naive(tournament.start_date) < team_effective_start(pick.created_at):
                rows.append(_row(user, pick, 0))
                continue
            total = sum(
                points.get(gid, 0) * (captain_multiplier if gid == pick.captain_id else 1)
                for gid in pick.golfer_ids
            )
            rows.append(_row(user, pick, total, 1 if played & set(pick.golfer_ids) else 0))
        return rank_entries(rows)

    key = leaderboard_key('tournament', season, tournament_id)
    return memoize(cache, key, build, get_config().leaderboard_cache_ttl, dump=_dump_entries, load=_load_entries)


def get_period_leaderboard(
    store: MemoryStore,
    period: str,
    reference_date: Optional[datetime] = None,
    season: Optional[int] = None,
    cache: Optional[Cache] = None,
) -> list[RankedEntry]:
    """
    Standings for one week or month with movement against the previous one.

    The previous week is the gameweek seven days earlier and the previous
    month the prior calendar month. Season standings carry no movement.

    Raises:
        ValidationError: Unknown period
    """
    if period not in PERIODS:
        raise ValidationError(f'Invalid period: {period}. Must be one of {", ".join(PERIODS)}')
    season = _resolve_season(store, season, cache)
    reference_date = reference_date or datetime.now()

    if period == 'week':
        anchor = week_start(reference_date)
        previous_anchor: Optional[datetime] = anchor - timedelta(days=7)
    elif period == 'month':
        anchor = month_start(reference_date)
        previous_anchor = previous_month_start(reference_date)
    else:
        anchor = reference_date
        previous_anchor = None

    def build() -> list[RankedEntry]:
        with timed(logger, 'period-leaderboard', season=season, period=period):
            data = _load_season(store, season)
            current = _window_rows(data, period, anchor)
            previous = _window_rows(data, period, previous_anchor) if previous_anchor else None
            return rank_entries(current, previous)

    key = leaderboard_key('period', season, period, format_date_string(anchor))
    return memoize(cache, key, build, get_config().leaderboard_cache_ttl, dump=_dump_entries, load=_load_entries)
