"""
Team aggregation: per-golfer week/month/season points for one roster.

``get_team_golfer_scores`` and ``get_transfer_history`` are pure and work on
pre-fetched models; ``get_my_team`` does the fetching.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .config import get_captain_multiplier
from .constants import GOLFERS, SCORED_STATUSES, SCORES, SEASONS, TOURNAMENTS
from .dates import (
    gameweek_number,
    is_date_in_period,
    month_end,
    month_start,
    season_first_saturday,
    season_start,
    team_effective_start,
    to_naive,
    week_end,
    week_start,
)
from .errors import NotFoundError
from .models import (
    Golfer,
    GolferRef,
    GolferWithScores,
    MyTeam,
    PickHistory,
    Score,
    TeamTotals,
    Tournament,
    TournamentScoreInfo,
    TransferHistoryEntry,
)
from .picks import get_pick_history, get_user_pick
from .store import MemoryStore
from .utils import full_name

logger = logging.getLogger('fantasygolf.team')


def _score_info(score: Score, tournament: Tournament) -> TournamentScoreInfo:
    return TournamentScoreInfo(
        tournament_id=score.tournament_id,
        tournament_name=tournament.name,
        tournament_date=to_naive(tournament.start_date),
        participated=score.participated,
        position=score.position,
        raw_score=score.raw_score,
        base_points=score.base_points,
        bonus_points=score.bonus_points,
        multiplied_points=score.multiplied_points,
    )


def get_team_golfer_scores(
    golfers: list[Golfer],
    tournaments: list[Tournament],
    scores: list[Score],
    season_start: Optional[datetime],
    captain_id: Optional[str],
    selected_week_start: datetime,
    selected_week_end: datetime,
    effective_start: datetime,
    captain_multiplier: Optional[int] = None,
) -> list[GolferWithScores]:
    """
    Compute each golfer's week, month and season points.

    Only scores of the given (published/complete) tournaments count, dated
    by tournament start. Every window is floored at ``effective_start``; the
    season window also starts no earlier than the season's first Saturday
    (the selected week when there is no season start). The month is the
    calendar month of ``selected_week_start``. The captain's sums are doubled.

    Args:
        golfers: Roster golfers
        tournaments: Published or complete tournaments
        scores: Candidate scores (others are ignored)
        season_start: Season start date, or None
        captain_id: Captain golfer id, or None
        selected_week_start: Start of the week window
        selected_week_end: End of the week window
        effective_start: Team effective start
        captain_multiplier: Defaults to the configured value (2)

    Returns:
        Golfers sorted by week points, highest first (stable)
    """
    if captain_multiplier is None:
        captain_multiplier = get_captain_multiplier()

    tournament_map = {t.id: t for t in tournaments}
    scores_by_golfer: dict[str, list[Score]] = {}
    for score in scores:
        if score.tournament_id in tournament_map:
            scores_by_golfer.setdefault(score.golfer_id, []).append(score)

    season_floor = season_first_saturday(season_start) if season_start else week_start(selected_week_start)
    season_floor = max(season_floor, effective_start)
    window_month_start = month_start(selected_week_start)
    window_month_end = month_end(selected_week_start)

    results = []
    for golfer in golfers:
        infos = [_score_info(s, tournament_map[s.tournament_id]) for s in scores_by_golfer.get(golfer.id, [])]
        infos.sort(key=lambda info: info.tournament_date, reverse=True)

        week_scores = [
            i for i in infos
            if is_date_in_period(i.tournament_date, selected_week_start, selected_week_end)
            and i.tournament_date >= effective_start
        ]
        month_scores = [
            i for i in infos
            if is_date_in_period(i.tournament_date, window_month_start, window_month_end)
            and i.tournament_date >= effective_start
        ]
        season_scores = [i for i in infos if i.tournament_date >= season_floor]

        is_captain = captain_id is not None and golfer.id == captain_id
        factor = captain_multiplier if is_captain else 1
        results.append(GolferWithScores(
            golfer=golfer,
            week_points=sum(i.multiplied_points for i in week_scores) * factor,
            month_points=sum(i.multiplied_points for i in month_scores) * factor,
            season_points=sum(i.multiplied_points for i in season_scores) * factor,
            week_scores=week_scores,
            season_scores=season_scores,
            is_captain=is_captain,
        ))

    results.sort(key=lambda g: g.week_points, reverse=True)
    return results


def team_totals(golfers_with_scores: Iterable[GolferWithScores]) -> TeamTotals:
    """Sum the (already captain-adjusted) windows across the roster."""
    totals = TeamTotals()
    for g in golfers_with_scores:
        totals.week_points += g.week_points
        totals.month_points += g.month_points
        totals.season_points += g.season_points
    return totals


def get_transfer_history(history: list[PickHistory], golfer_names: dict[str, str]) -> list[TransferHistoryEntry]:
    """
    Describe each team save as golfers added and removed.

    ``history`` is newest first; each entry is compared with the next older
    one. The oldest entry (the initial pick) lists its whole roster as added.
    Golfers missing from ``golfer_names`` are left out, and saves that
    changed no golfers (captain-only changes) are dropped.
    """
    entries = []
    for index, item in enumerate(history):
        previous = history[index + 1] if index + 1 < len(history) else None
        current_ids = list(dict.fromkeys(item.golfer_ids))
        previous_ids = list(dict.fromkeys(previous.golfer_ids)) if previous else []

        added = [GolferRef(gid, golfer_names[gid]) for gid in current_ids
                 if gid not in previous_ids and gid in golfer_names]
        removed = []
        if previous is not None:
            removed = [GolferRef(gid, golfer_names[gid]) for gid in previous_ids
                       if gid not in current_ids and gid in golfer_names]

        if added or removed:
            entries.append(TransferHistoryEntry(
                changed_at=item.changed_at,
                reason=item.reason,
                total_spent=item.total_spent,
                golfer_count=len(item.golfer_ids),
                added_golfers=added,
                removed_golfers=removed,
            ))
    return entries


def get_my_team(
    store: MemoryStore,
    user_id: str,
    season: int,
    reference_date: Optional[datetime] = None,
) -> MyTeam:
    """
    Fetch everything the team view needs and aggregate it.

    Raises:
        NotFoundError: The user has no team for ``season``
    """
    reference_date = reference_date or datetime.now()
    pick = get_user_pick(store, user_id, season)
    if pick is None:
        raise NotFoundError('No team found for this season')

    golfers = [Golfer.from_doc(d) for d in store.find(GOLFERS, {'id': set(pick.golfer_ids)})]
    order = {gid: i for i, gid in enumerate(pick.golfer_ids)}
    golfers.sort(key=lambda g: order[g.id])

    tournaments = [
        Tournament.from_doc(d)
        for d in store.find(TOURNAMENTS, {'season': season, 'status': set(SCORED_STATUSES)})
    ]
    tournament_ids = {t.id for t in tournaments}
    scores = []
    if tournament_ids and pick.golfer_ids:
        scores = [
            Score.from_doc(d)
            for d in store.find(SCORES, {'golfer_id': set(pick.golfer_ids), 'tournament_id': tournament_ids})
        ]

    season_doc = store.find_one(SEASONS, {'name': str(season)})
    start_date = season_doc['start_date'] if season_doc else season_start(season)

    selected_start, selected_end = week_start(reference_date), week_end(reference_date)
    effective = team_effective_start(pick.created_at)
    logger.debug(f"Team view for {user_id}: {len(tournaments)} tournaments, {len(scores)} scores, effective from {effective}")
    golfers_with_scores = get_team_golfer_scores(
        golfers, tournaments, scores, start_date, pick.captain_id, selected_start, selected_end, effective,
    )

    history = get_pick_history(store, user_id, season)
    history_ids = {gid for h in history for gid in h.golfer_ids}
    names = {d['id']: full_name(d) for d in store.find(GOLFERS, {'id': history_ids})} if history_ids else {}

    return MyTeam(
        pick=pick,
        golfers=golfers_with_scores,
        totals=team_totals(golfers_with_scores),
        transfer_history=get_transfer_history(history, names),
        week_start=selected_start,
        week_end=selected_end,
        team_effective_start=effective,
        gameweek=gameweek_number(reference_date, start_date),
    )
