"""Validation functions for rosters, podium entries and tournament results."""

from .constants import BUDGET_CAP, ROSTER_SIZE
from .scoring import golfer_count_tier


def validate_podium(entries: list[dict]) -> list[str]:
    """
    Validate the podium of a bulk score submission.

    Checks:
    - At least one golfer participated
    - The podium places required by the field size are assigned
      (1-10 golfers: 1st; 10-20: 1st and 2nd; 20+: 1st, 2nd and 3rd)
    - No podium place is assigned twice

    Args:
        entries: Score entries with ``participated`` and ``position`` keys

    Returns:
        List of validation error messages (empty if valid)
    """
    participants = [e for e in entries if e.get('participated')]
    if not participants:
        return ['At least one golfer must have participated']

    positions = [e.get('position') for e in participants]
    has_first, has_second, has_third = (p in positions for p in (1, 2, 3))

    tier = golfer_count_tier(len(participants))
    if tier == '0-10' and not has_first:
        return ['With 1-10 golfers, you must assign a 1st place finish']
    if tier == '10-20' and not (has_first and has_second):
        return ['With 10-20 golfers, you must assign both 1st and 2nd place finishes']
    if tier == '20+' and not (has_first and has_second and has_third):
        return ['With 20+ golfers, you must assign 1st, 2nd, and 3rd place finishes']

    podium = [p for p in positions if p in (1, 2, 3)]
    if len(podium) != len(set(podium)):
        return ['Duplicate positions found. Each position (1st, 2nd, 3rd) can only be assigned once']

    return []


def validate_roster(
    golfer_ids: list[str],
    captain_id: str | None,
    prices: dict[str, int],
    roster_size: int = ROSTER_SIZE,
    budget_cap: int = BUDGET_CAP,
) -> list[str]:
    """
    Validate a team selection against the roster rules.

    Rules are checked in order and only the first violation is reported,
    so the message always names a single rule.

    Args:
        golfer_ids: Selected golfer ids
        captain_id: Optional captain, must be one of ``golfer_ids``
        prices: Current price per known golfer id
        roster_size: Required number of golfers
        budget_cap: Maximum total price

    Returns:
        List of validation error messages (empty if valid)
    """
    if len(golfer_ids) != roster_size:
        return [f'You must select exactly {roster_size} golfers']

    if len(set(golfer_ids)) != len(golfer_ids):
        return ['Duplicate golfers are not allowed']

    if any(gid not in prices for gid in golfer_ids):
        return ['One or more golfers not found']

    if captain_id is not None and captain_id not in golfer_ids:
        return ['Captain must be one of the selected golfers']

    total = sum(prices[gid] for gid in golfer_ids)
    if total > budget_cap:
        return [f'Budget exceeded. Maximum is ${budget_cap // 1_000_000}M']

    return []


def validate_score_record(score: dict) -> list[str]:
    """
    Check a stored score document for consistency with the scoring invariants.

    A non-participant must carry no position, raw score or points, and
    multiplied points must be a whole multiple of base plus bonus.
    """
    errors = []
    label = f"{score.get('golfer_id')}@{score.get('tournament_id')}"

    if not score.get('participated'):
        for key in ('position', 'raw_score'):
            if score.get(key) is not None:
                errors.append(f'{label}: non-participant has {key} set')
        for key in ('base_points', 'bonus_points', 'multiplied_points'):
            if score.get(key):
                errors.append(f'{label}: non-participant has {key}={score.get(key)}')
        return errors

    subtotal = score.get('base_points', 0) + score.get('bonus_points', 0)
    multiplied = score.get('multiplied_points', 0)
    if subtotal == 0 and multiplied != 0:
        errors.append(f'{label}: multiplied points {multiplied} without base or bonus points')
    elif subtotal and multiplied % subtotal != 0:
        errors.append(f'{label}: multiplied points {multiplied} is not a multiple of {subtotal}')

    return errors
