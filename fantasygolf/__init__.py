from .errors import (
    DependencyError,
    DuplicateKeyError,
    LeagueError,
    NotFoundError,
    StateError,
    ValidationError,
)
from .scoring import (
    base_points,
    bonus_points,
    compute_points,
    golfer_count_tier,
    multiplier_for_type,
    resolve_scoring_format,
)
from .store import JsonStore, MemoryStore
from .cache import MemoryCache, RedisCache
from .scores import (
    bulk_enter_scores,
    enter_score,
    recalculate_all,
    recalculate_scores_for_tournament,
)
from .tournaments import create_tournament, update_tournament
from .seasons import create_season, get_active_season, set_active_season
from .settings import get_setting, load_league_settings, set_setting
from .picks import save_picks
from .team import get_my_team, get_team_golfer_scores, get_transfer_history
from .leaderboard import (
    get_full_leaderboard,
    get_leaderboard,
    get_period_leaderboard,
    get_tournament_leaderboard,
    rank_entries,
)
from .pricing import calculate_golfer_prices
from .season_upload import process_season_upload, process_season_workbook

__all__ = [
    # Errors
    'LeagueError',
    'NotFoundError',
    'ValidationError',
    'StateError',
    'DependencyError',
    'DuplicateKeyError',
    # Scoring rules
    'base_points',
    'bonus_points',
    'compute_points',
    'golfer_count_tier',
    'multiplier_for_type',
    'resolve_scoring_format',
    # Storage and cache
    'MemoryStore',
    'JsonStore',
    'MemoryCache',
    'RedisCache',
    # Scores and tournaments
    'enter_score',
    'bulk_enter_scores',
    'recalculate_scores_for_tournament',
    'recalculate_all',
    'create_tournament',
    'update_tournament',
    # Seasons and settings
    'create_season',
    'get_active_season',
    'set_active_season',
    'get_setting',
    'set_setting',
    'load_league_settings',
    # Teams
    'save_picks',
    'get_my_team',
    'get_team_golfer_scores',
    'get_transfer_history',
    # Leaderboards
    'rank_entries',
    'get_leaderboard',
    'get_full_leaderboard',
    'get_tournament_leaderboard',
    'get_period_leaderboard',
    # Admin
    'calculate_golfer_prices',
    'process_season_upload',
    'process_season_workbook',
]
