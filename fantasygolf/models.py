"""Data models for the fantasy golf league.

Stored entities convert to and from the document-store dict form with
``from_doc`` / ``to_doc``. Documents carry their key under ``id``.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Optional

from .constants import STATS_SEASONS


def _known(cls, doc: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in doc.items() if k in names}


class Document:
    """Mixin for dataclasses stored as plain dicts."""

    @classmethod
    def from_doc(cls, doc: dict):
        return cls(**_known(cls, doc))

    def to_doc(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GolferStats(Document):
    """Season snapshot. Reporting only, never a scoring input."""
    times_played: int = 0
    times_finished_1st: int = 0
    times_finished_2nd: int = 0
    times_finished_3rd: int = 0
    times_scored_36_plus: int = 0
    times_scored_32_plus: int = 0


@dataclass
class Golfer(Document):
    id: str
    first_name: str
    last_name: str = ''
    price: int = 0
    is_active: bool = True
    stats_2024: GolferStats = field(default_factory=GolferStats)
    stats_2025: GolferStats = field(default_factory=GolferStats)
    stats_2026: GolferStats = field(default_factory=GolferStats)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    def stats_for(self, season: int) -> GolferStats:
        key = season if season in STATS_SEASONS else STATS_SEASONS[0]
        return getattr(self, f'stats_{key}')

    @classmethod
    def from_doc(cls, doc: dict) -> 'Golfer':
        data = _known(cls, doc)
        for year in STATS_SEASONS:
            key = f'stats_{year}'
            data[key] = GolferStats.from_doc(data.get(key) or {})
        return cls(**data)


@dataclass
class Tournament(Document):
    id: str
    name: str
    start_date: datetime
    end_date: datetime
    season: int
    tournament_type: str = 'rollup_stableford'
    scoring_format: str = 'stableford'
    is_multi_day: bool = False
    multiplier: int = 1
    golfer_count_tier: str = '0-10'
    status: str = 'draft'
    participating_golfer_ids: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Score(Document):
    id: str
    tournament_id: str
    golfer_id: str
    participated: bool = False
    position: Optional[int] = None
    raw_score: Optional[int] = None
    base_points: int = 0
    bonus_points: int = 0
    multiplied_points: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Pick(Document):
    id: str
    user_id: str
    season: int
    golfer_ids: list[str] = field(default_factory=list)
    captain_id: Optional[str] = None
    total_spent: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PickHistory(Document):
    """Append-only audit row written on every team save."""
    id: str
    user_id: str
    season: int
    golfer_ids: list[str]
    total_spent: int
    reason: str
    changed_at: datetime
    captain_id: Optional[str] = None


@dataclass
class Season(Document):
    id: str
    name: str
    start_date: datetime
    end_date: datetime
    is_active: bool = False
    status: str = 'setup'
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def year(self) -> int:
        return int(self.name)


@dataclass
class Setting(Document):
    id: str
    key: str
    value: Any = None
    updated_at: Optional[datetime] = None


@dataclass
class User(Document):
    id: str
    username: str
    first_name: str = ''
    last_name: str = ''


@dataclass
class LeagueSettings:
    """League state assembled once per request and passed explicitly."""
    transfers_open: bool = False
    allow_new_team_creation: bool = True
    max_transfers_per_week: int = 1
    max_players_per_transfer: int = 6
    current_season: int = 2026


@dataclass
class TournamentScoreInfo:
    """One score with its tournament's name and date attached."""
    tournament_id: str
    tournament_name: str
    tournament_date: datetime
    participated: bool
    position: Optional[int]
    raw_score: Optional[int]
    base_points: int
    bonus_points: int
    multiplied_points: int


@dataclass
class GolferWithScores:
    golfer: Golfer
    week_points: int = 0
    month_points: int = 0
    season_points: int = 0
    week_scores: list[TournamentScoreInfo] = field(default_factory=list)
    season_scores: list[TournamentScoreInfo] = field(default_factory=list)
    is_captain: bool = False


@dataclass
class TeamTotals:
    week_points: int = 0
    month_points: int = 0
    season_points: int = 0


@dataclass
class GolferRef:
    id: str
    name: str


@dataclass
class TransferHistoryEntry:
    changed_at: datetime
    reason: str
    total_spent: int
    golfer_count: int
    added_golfers: list[GolferRef] = field(default_factory=list)
    removed_golfers: list[GolferRef] = field(default_factory=list)


@dataclass
class MyTeam:
    pick: Pick
    golfers: list[GolferWithScores]
    totals: TeamTotals
    transfer_history: list[TransferHistoryEntry]
    week_start: datetime
    week_end: datetime
    team_effective_start: datetime
    gameweek: int


@dataclass
class LeaderboardRow:
    """Unranked per-user total fed to ``rank_entries``."""
    user_id: str
    username: str
    points: int
    first_name: str = ''
    last_name: str = ''
    team_value: int = 0
    tournaments_played: int = 0


@dataclass
class RankedEntry:
    user_id: str
    username: str
    points: int
    rank: int
    first_name: str = ''
    last_name: str = ''
    team_value: int = 0
    tournaments_played: int = 0
    movement: Optional[str] = None
    movement_amount: int = 0
    previous_rank: Optional[int] = None

    @classmethod
    def from_row(cls, row: LeaderboardRow, rank: int) -> 'RankedEntry':
        return cls(rank=rank, **asdict(row))


@dataclass
class FullLeaderboard:
    season: list[RankedEntry]
    month: list[RankedEntry]
    week: list[RankedEntry]
    current_month: str
    week_start: datetime
    week_end: datetime


@dataclass
class PricingResult:
    updated: int
    min_price: int
    max_price: int
    summary: str


@dataclass
class SeasonUploadResult:
    golfers_created: int = 0
    golfers_matched: int = 0
    tournaments_created: int = 0
    scores_entered: int = 0
    rows_processed: int = 0
    unmatched_dates: list[str] = field(default_factory=list)
    summary: str = ''
