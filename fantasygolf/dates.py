"""
Gameweek date helpers.

A gameweek runs Saturday 00:00 to Friday 23:59:59.999999 (naive local time).
Timezone-aware inputs are converted to naive local time first.
Teams start earning points from the Saturday 08:00 after they were created.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional

SATURDAY = 5
TEAM_START_HOUR = 8
EPOCH = datetime(2000, 1, 1)
DEFAULT_SEASON_YEAR = 2026


def to_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time. Naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return to_naive(value)
    return datetime.combine(value, time.min)


def week_start(value: date | datetime | None = None) -> datetime:
    """Saturday 00:00 of the gameweek containing ``value`` (default: now)."""
    d = _as_datetime(value or datetime.now())
    days_since_saturday = (d.weekday() - SATURDAY) % 7
    return datetime.combine(d.date() - timedelta(days=days_since_saturday), time.min)


def week_end(value: date | datetime | None = None) -> datetime:
    """Friday 23:59:59.999999 closing the gameweek containing ``value``."""
    return datetime.combine(week_start(value).date() + timedelta(days=6), time.max)


def next_week_start(value: date | datetime | None = None) -> datetime:
    """The following Saturday at 08:00. A Saturday maps to the next one."""
    d = _as_datetime(value or datetime.now())
    days_until = (SATURDAY - d.weekday()) % 7 or 7
    return datetime.combine(d.date() + timedelta(days=days_until), time(TEAM_START_HOUR))


def team_effective_start(created_at: date | datetime | str | None) -> datetime:
    """
    First moment a team's points count.

    A team created mid-week starts with the next gameweek. Missing or
    unparseable creation dates count from 2000-01-01 so old teams keep
    all their points.
    """
    if created_at is None:
        return EPOCH
    if isinstance(created_at, str):
        try:
            # fromisoformat only accepts a trailing Z from Python 3.11
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
        except ValueError:
            return EPOCH
    if not isinstance(created_at, (date, datetime)):
        return EPOCH
    return next_week_start(_as_datetime(created_at))


def month_start(value: date | datetime | None = None) -> datetime:
    d = _as_datetime(value or datetime.now())
    return datetime(d.year, d.month, 1)


def month_end(value: date | datetime | None = None) -> datetime:
    d = _as_datetime(value or datetime.now())
    last_day = calendar.monthrange(d.year, d.month)[1]
    return datetime.combine(date(d.year, d.month, last_day), time.max)


def previous_month_start(value: date | datetime | None = None) -> datetime:
    first = month_start(value)
    return month_start(first - timedelta(days=1))


def season_start(year: int = DEFAULT_SEASON_YEAR) -> datetime:
    """January 1st of ``year``."""
    return datetime(year, 1, 1)


def season_first_saturday(start: date | datetime) -> datetime:
    """First Saturday on or after ``start``, at midnight."""
    d = _as_datetime(start)
    days_until = (SATURDAY - d.weekday()) % 7
    return datetime.combine(d.date() + timedelta(days=days_until), time.min)


def gameweek_number(value: date | datetime, season_start_date: Optional[date | datetime]) -> int:
    """1-based gameweek of ``value`` counted from the season's first Saturday."""
    first = season_first_saturday(season_start_date) if season_start_date else week_start(value)
    return (week_start(value) - first).days // 7 + 1


def is_date_in_period(value: datetime, period_start: datetime, period_end: datetime) -> bool:
    """Inclusive on both ends."""
    return period_start <= to_naive(value) <= period_end


def format_date_string(value: date | datetime) -> str:
    """``YYYY-MM-DD``."""
    return value.strftime('%Y-%m-%d')


def parse_date(value: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` or ``DD/MM/YYYY``; None when neither matches."""
    value = value.strip()
    for fmt in ('%Y-%m-%d', '%d/%m/%Y'):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None
