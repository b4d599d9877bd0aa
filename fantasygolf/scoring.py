"""
Position and bonus scoring rules.

Pure functions, no I/O. Two historical base-point rulesets and two medal
bonus cutoffs are kept as named strategies; callers select them explicitly.

Example:
    >>> compute_points(True, 1, 36, 'stableford', False, 3)
    (10, 3, 39)
"""

from typing import Callable, Optional

from .constants import (
    BONUS_THRESHOLDS,
    DEFAULT_TOURNAMENT_TYPE,
    FLAT_BASE_POINTS,
    LEGACY_MEDAL_THRESHOLDS,
    TIERED_BASE_POINTS,
    TOURNAMENT_TYPE_CONFIG,
)

FLAT = 'flat'
TIERED = 'tiered'
STANDARD = 'standard'
MEDAL_LEGACY = 'medal_legacy'


def flat_base_points(position: Optional[int], tier: Optional[str] = None) -> int:
    """Current rule: 1st 10, 2nd 7, 3rd 5. Tier is ignored."""
    if position is None:
        return 0
    return FLAT_BASE_POINTS.get(position, 0)


def tiered_base_points(position: Optional[int], tier: Optional[str] = None) -> int:
    """Legacy rule: podium points depend on the field-size tier."""
    if position is None or tier is None:
        return 0
    return TIERED_BASE_POINTS.get(tier, {}).get(position, 0)


BASE_POINT_RULESETS: dict[str, Callable[[Optional[int], Optional[str]], int]] = {
    FLAT: flat_base_points,
    TIERED: tiered_base_points,
}


def base_points(position: Optional[int], tier: Optional[str] = None, ruleset: str = FLAT) -> int:
    """
    Base points for a finishing position.

    Args:
        position: Finishing position (1-based) or None
        tier: Golfer count tier, only read by the tiered ruleset
        ruleset: 'flat' (default) or 'tiered'

    Returns:
        Base points (0 for None or non-podium positions)
    """
    try:
        rule = BASE_POINT_RULESETS[ruleset]
    except KeyError:
        raise ValueError(f'Unknown base points ruleset: {ruleset}') from None
    return rule(position, tier)


def standard_bonus_points(raw_score: Optional[int], scoring_format: str, is_multi_day: bool = False) -> int:
    if raw_score is None:
        return 0
    top, lower = BONUS_THRESHOLDS.get((scoring_format, bool(is_multi_day)), BONUS_THRESHOLDS[('stableford', False)])
    if scoring_format == 'medal':
        if raw_score <= top:
            return 3
        if raw_score <= lower:
            return 1
        return 0
    if raw_score >= top:
        return 3
    if raw_score >= lower:
        return 1
    return 0


def legacy_medal_bonus_points(raw_score: Optional[int], scoring_format: str, is_multi_day: bool = False) -> int:
    """Medal cutoffs on absolute strokes (72 / 76); stableford uses the standard table."""
    if scoring_format != 'medal':
        return standard_bonus_points(raw_score, scoring_format, is_multi_day)
    if raw_score is None:
        return 0
    top, lower = LEGACY_MEDAL_THRESHOLDS
    if raw_score <= top:
        return 3
    if raw_score <= lower:
        return 1
    return 0


BONUS_RULESETS: dict[str, Callable[[Optional[int], str, bool], int]] = {
    STANDARD: standard_bonus_points,
    MEDAL_LEGACY: legacy_medal_bonus_points,
}


def bonus_points(
    raw_score: Optional[int],
    scoring_format: str,
    is_multi_day: bool = False,
    ruleset: str = STANDARD,
) -> int:
    """
    Bonus points for a raw round score. Tiers are mutually exclusive: 3, 1 or 0.

    Stableford (higher is better): 36+ for 3, 32-35 for 1 (72 / 64 multi-day).
    Medal, strokes relative to par (lower is better): <=0 for 3, <=4 for 1
    (<=8 multi-day).

    Args:
        raw_score: Stableford points or medal strokes-to-par, or None
        scoring_format: 'stableford' or 'medal'
        is_multi_day: Use the multi-day thresholds
        ruleset: 'standard' (default) or 'medal_legacy'

    Returns:
        0, 1 or 3
    """
    try:
        rule = BONUS_RULESETS[ruleset]
    except KeyError:
        raise ValueError(f'Unknown bonus ruleset: {ruleset}') from None
    return rule(raw_score, scoring_format, is_multi_day)


def compute_points(
    participated: bool,
    position: Optional[int],
    raw_score: Optional[int],
    scoring_format: str = 'stableford',
    is_multi_day: bool = False,
    multiplier: int = 1,
    base_ruleset: str = FLAT,
    bonus_ruleset: str = STANDARD,
    tier: Optional[str] = None,
) -> tuple[int, int, int]:
    """
    Compute (base, bonus, multiplied) points for one golfer in one tournament.

    Non-participants always score (0, 0, 0).
    """
    if not participated:
        return 0, 0, 0
    base = base_points(position, tier=tier, ruleset=base_ruleset)
    bonus = bonus_points(raw_score, scoring_format, is_multi_day, ruleset=bonus_ruleset)
    return base, bonus, (base + bonus) * multiplier


def golfer_count_tier(count: int) -> str:
    """Bucket a field size: up to 10 is '0-10', under 20 is '10-20', else '20+'."""
    if count <= 10:
        return '0-10'
    if count < 20:
        return '10-20'
    return '20+'


def tournament_type_config(tournament_type: Optional[str]) -> dict:
    """Type table entry, falling back to the default type for unknown values."""
    return TOURNAMENT_TYPE_CONFIG.get(tournament_type or DEFAULT_TOURNAMENT_TYPE,
                                      TOURNAMENT_TYPE_CONFIG[DEFAULT_TOURNAMENT_TYPE])


def multiplier_for_type(tournament_type: Optional[str]) -> int:
    return tournament_type_config(tournament_type)['multiplier']


def tournament_type_label(tournament_type: Optional[str]) -> str:
    return tournament_type_config(tournament_type)['label']


def resolve_scoring_format(tournament_type: Optional[str], requested: Optional[str] = None) -> str:
    """A forced format for the type wins over ``requested``, which wins over the type default."""
    config = tournament_type_config(tournament_type)
    return config['forced_scoring_format'] or requested or config['default_scoring_format']
