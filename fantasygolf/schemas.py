"""Pydantic schemas for request payloads and the league config file."""

import os
from datetime import datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .constants import (
    BUDGET_CAP,
    CAPTAIN_MULTIPLIER,
    GOLFER_COUNT_TIERS,
    ROSTER_SIZE,
    SCORING_FORMATS,
    SEASON_STATUSES,
    TOURNAMENT_STATUSES,
    TOURNAMENT_TYPE_CONFIG,
)
from .dates import to_naive
from .errors import ValidationError
from .utils import format_validation_errors
from .validators import validate_podium

M = TypeVar('M', bound=BaseModel)


class LeagueConfig(BaseModel):
    """Complete league_config.json file structure."""

    budget_cap: int = Field(default=BUDGET_CAP, gt=0)
    roster_size: int = Field(default=ROSTER_SIZE, ge=1)
    captain_multiplier: int = Field(default=CAPTAIN_MULTIPLIER, ge=1)
    leaderboard_cache_ttl: int = Field(default=60, ge=0)
    settings_cache_ttl: int = Field(default=300, ge=0)
    active_season_cache_ttl: int = Field(default=60, ge=0)
    cache_key_prefix: str = Field(default_factory=lambda: os.environ.get('FANTASYGOLF_CACHE_PREFIX', ''))
    data_dir: str = 'data/store'

    class Config:
        extra = 'forbid'


def _check_position(v):
    if v is not None and not (1 <= v <= 100):
        raise ValueError(f'Position must be 1-100, got {v}')
    return v


class EnterScoreRequest(BaseModel):
    """Single score entry."""

    tournament_id: str = Field(..., min_length=1)
    golfer_id: str = Field(..., min_length=1)
    participated: bool = True
    position: Optional[int] = None
    raw_score: Optional[int] = None

    @field_validator('position')
    @classmethod
    def validate_position(cls, v):
        """Positions run 1-100."""
        return _check_position(v)

    class Config:
        extra = 'forbid'


class BulkScoreEntry(BaseModel):
    """Score entry within a bulk submission. Golfers default to not participating."""

    golfer_id: str = Field(..., min_length=1)
    participated: bool = False
    position: Optional[int] = None
    raw_score: Optional[int] = None

    @field_validator('position')
    @classmethod
    def validate_position(cls, v):
        """Positions run 1-100."""
        return _check_position(v)

    class Config:
        extra = 'forbid'


class BulkEnterScoresRequest(BaseModel):
    """Results for a whole tournament field."""

    tournament_id: str = Field(..., min_length=1)
    scores: list[BulkScoreEntry] = Field(..., min_length=1)

    @model_validator(mode='after')
    def check_podium(self):
        """Require a participant and the podium places the field size calls for."""
        errors = validate_podium([s.model_dump() for s in self.scores])
        if errors:
            raise ValueError(errors[0])
        return self

    class Config:
        extra = 'forbid'


class SavePicksRequest(BaseModel):
    """Team selection or transfer."""

    golfer_ids: list[str]
    captain_id: Optional[str] = None
    reason: str = 'Team selection'

    class Config:
        extra = 'forbid'


class CalculatePricesRequest(BaseModel):
    season: int

    @field_validator('season')
    @classmethod
    def validate_season(cls, v):
        """Seasons from 2020 up to five years ahead."""
        latest = datetime.now().year + 5
        if not (2020 <= v <= latest):
            raise ValueError(f'Season must be 2020-{latest}, got {v}')
        return v


def _check_type(v):
    if v is not None and v not in TOURNAMENT_TYPE_CONFIG:
        raise ValueError(f'Invalid tournament type: {v}')
    return v


def _local_time(v):
    if isinstance(v, datetime):
        return to_naive(v)
    return v


class TournamentCreate(BaseModel):
    """New tournament. Unset scoring fields come from the tournament type."""

    name: str = Field(..., min_length=1)
    start_date: datetime
    end_date: datetime
    season: int
    tournament_type: str = 'rollup_stableford'
    scoring_format: Optional[str] = Field(default=None, pattern=r'^(stableford|medal)$')
    is_multi_day: Optional[bool] = None
    multiplier: Optional[int] = Field(default=None, ge=1)
    golfer_count_tier: Optional[str] = None
    status: str = Field(default='draft', pattern=r'^(draft|published|complete)$')
    participating_golfer_ids: list[str] = Field(default_factory=list)

    @field_validator('start_date', 'end_date')
    @classmethod
    def validate_local_time(cls, v):
        """Store dates as naive local time."""
        return _local_time(v)

    @field_validator('tournament_type')
    @classmethod
    def validate_type(cls, v):
        """Ensure the type is known."""
        return _check_type(v)

    @field_validator('golfer_count_tier')
    @classmethod
    def validate_tier(cls, v):
        """Ensure the tier is known."""
        if v is not None and v not in GOLFER_COUNT_TIERS:
            raise ValueError(f'Invalid golfer count tier: {v}')
        return v

    @model_validator(mode='after')
    def validate_dates(self):
        """End date may not precede start date."""
        if self.end_date < self.start_date:
            raise ValueError('End date must be on or after start date')
        return self

    class Config:
        extra = 'forbid'


class TournamentUpdate(BaseModel):
    """Partial tournament edit. Only fields that are set are applied."""

    name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tournament_type: Optional[str] = None
    scoring_format: Optional[str] = None
    is_multi_day: Optional[bool] = None
    golfer_count_tier: Optional[str] = None
    status: Optional[str] = None
    participating_golfer_ids: Optional[list[str]] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def validate_local_time(cls, v):
        """Store dates as naive local time."""
        return _local_time(v)

    @field_validator('tournament_type')
    @classmethod
    def validate_type(cls, v):
        """Ensure the type is known."""
        return _check_type(v)

    @field_validator('scoring_format')
    @classmethod
    def validate_format(cls, v):
        """Ensure the format is known."""
        if v is not None and v not in SCORING_FORMATS:
            raise ValueError(f'Invalid scoring format: {v}')
        return v

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        """Ensure the status is known."""
        if v is not None and v not in TOURNAMENT_STATUSES:
            raise ValueError(f'Invalid status: {v}')
        return v

    class Config:
        extra = 'forbid'


class SeasonCreate(BaseModel):
    name: str = Field(..., pattern=r'^\d{4}$')
    start_date: datetime
    end_date: datetime
    is_active: bool = False
    status: str = Field(default='setup', pattern=r'^(setup|active|complete)$')

    @field_validator('start_date', 'end_date')
    @classmethod
    def validate_local_time(cls, v):
        """Store dates as naive local time."""
        return _local_time(v)

    @model_validator(mode='after')
    def validate_dates(self):
        """End date may not precede start date."""
        if self.end_date < self.start_date:
            raise ValueError('End date must be on or after start date')
        return self

    class Config:
        extra = 'forbid'


class SeasonUpdate(BaseModel):
    name: Optional[str] = Field(default=None, pattern=r'^\d{4}$')
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def validate_local_time(cls, v):
        """Store dates as naive local time."""
        return _local_time(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        """Ensure the status is known."""
        if v is not None and v not in SEASON_STATUSES:
            raise ValueError(f'Invalid status: {v}')
        return v

    class Config:
        extra = 'forbid'


class GolferCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(default='')
    price: int = Field(default=0, ge=0)
    is_active: bool = True

    class Config:
        extra = 'forbid'


class GolferUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    class Config:
        extra = 'forbid'


def parse_request(schema: type[M], data: Any) -> M:
    """
    Validate a request payload, converting pydantic errors to ``ValidationError``.

    Example:
        request = parse_request(EnterScoreRequest, {'tournament_id': 't1', 'golfer_id': 'g1'})
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = format_validation_errors(e)
        raise ValidationError('; '.join(errors), errors=errors) from e
