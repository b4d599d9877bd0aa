"""Constants and mappings for the fantasy golf league."""

# Game rules
BUDGET_CAP = 50_000_000
ROSTER_SIZE = 6
CAPTAIN_MULTIPLIER = 2

# Tournament configuration by type. `forced_scoring_format` wins over any
# format supplied by the caller; None means the caller may choose.
TOURNAMENT_TYPE_CONFIG = {
    'rollup_stableford': {
        'label': 'Rollup Stableford',
        'multiplier': 1,
        'default_scoring_format': 'stableford',
        'forced_scoring_format': 'stableford',
        'default_multi_day': False,
    },
    'weekday_medal': {
        'label': 'Weekday Medal',
        'multiplier': 1,
        'default_scoring_format': 'medal',
        'forced_scoring_format': 'medal',
        'default_multi_day': False,
    },
    'weekend_medal': {
        'label': 'Weekend Medal',
        'multiplier': 2,
        'default_scoring_format': 'medal',
        'forced_scoring_format': 'medal',
        'default_multi_day': False,
    },
    'presidents_cup': {
        'label': 'Presidents Cup',
        'multiplier': 3,
        'default_scoring_format': 'stableford',
        'forced_scoring_format': None,
        'default_multi_day': False,
    },
    'founders': {
        'label': 'Founders',
        'multiplier': 4,
        'default_scoring_format': 'stableford',
        'forced_scoring_format': None,
        'default_multi_day': True,
    },
    'club_champs_nett': {
        'label': 'Club Champs Nett',
        'multiplier': 5,
        'default_scoring_format': 'medal',
        'forced_scoring_format': None,
        'default_multi_day': True,
    },
}

DEFAULT_TOURNAMENT_TYPE = 'rollup_stableford'
SCORING_FORMATS = ('stableford', 'medal')
TOURNAMENT_STATUSES = ('draft', 'published', 'complete')
SCORED_STATUSES = ('published', 'complete')
SEASON_STATUSES = ('setup', 'active', 'complete')
GOLFER_COUNT_TIERS = ('0-10', '10-20', '20+')

# Flat (current) base points by finishing position
FLAT_BASE_POINTS = {1: 10, 2: 7, 3: 5}

# Legacy base points by golfer-count tier
TIERED_BASE_POINTS = {
    '0-10': {1: 5},
    '10-20': {1: 5, 2: 2},
    '20+': {1: 5, 2: 3, 3: 1},
}

# Bonus thresholds: (format, multi_day) -> (threshold for 3, threshold for 1).
# Stableford: higher is better (>=). Medal: strokes relative to par, lower is better (<=).
BONUS_THRESHOLDS = {
    ('stableford', False): (36, 32),
    ('stableford', True): (72, 64),
    ('medal', False): (0, 4),
    ('medal', True): (0, 8),
}

# Legacy medal cutoffs on absolute strokes (pre nett-to-par data)
LEGACY_MEDAL_THRESHOLDS = (72, 76)

# Pricing band
MIN_PRICE = 3_000_000
MAX_PRICE = 15_000_000
PRICE_ROUNDING = 500_000
APPEARANCE_BONUS = 0.5

# Seasons that carry a golfer stats snapshot
STATS_SEASONS = (2024, 2025, 2026)

# Setting keys
SETTING_TRANSFERS_OPEN = 'transfers_open'
SETTING_ALLOW_NEW_TEAMS = 'allow_new_team_creation'
SETTING_MAX_TRANSFERS_PER_WEEK = 'max_transfers_per_week'
SETTING_MAX_PLAYERS_PER_TRANSFER = 'max_players_per_transfer'
SETTING_CURRENT_SEASON = 'current_season'

# Settings whose change alters what the active season's leaderboard shows
LEADERBOARD_SETTINGS = (
    SETTING_CURRENT_SEASON,
    SETTING_TRANSFERS_OPEN,
    SETTING_ALLOW_NEW_TEAMS,
)

# Collections
GOLFERS = 'golfers'
TOURNAMENTS = 'tournaments'
SCORES = 'scores'
PICKS = 'picks'
PICK_HISTORY = 'pick_history'
SEASONS = 'seasons'
SETTINGS = 'settings'
USERS = 'users'

UNIQUE_INDEXES = {
    SCORES: ('tournament_id', 'golfer_id'),
    PICKS: ('user_id', 'season'),
    SETTINGS: ('key',),
}
