"""League configuration management."""

from functools import lru_cache
from pathlib import Path

from .schemas import LeagueConfig
from .utils import load_json

CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'league_config.json'


@lru_cache(maxsize=1)
def get_config() -> LeagueConfig:
    """
    Load league configuration from data/league_config.json.

    Configuration is cached after first load. A missing file yields the
    built-in defaults (50M budget, 6-golfer roster, 2x captain).

    Returns:
        LeagueConfig object with validated settings

    Raises:
        ValidationError: If config file has invalid structure

    Example:
        from fantasygolf.config import get_config
        config = get_config()
        print(f"Budget cap: {config.budget_cap}")
    """
    if not CONFIG_PATH.exists():
        return LeagueConfig()
    return load_json(CONFIG_PATH, schema=LeagueConfig)


def get_budget_cap() -> int:
    """Get the team budget cap from config."""
    return get_config().budget_cap


def get_roster_size() -> int:
    """Get the number of golfers per team from config."""
    return get_config().roster_size


def get_captain_multiplier() -> int:
    """Get the captain points multiplier from config."""
    return get_config().captain_multiplier


def get_cache_key_prefix() -> str:
    """Get the deployment-specific cache key prefix."""
    return get_config().cache_key_prefix


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file or FANTASYGOLF_CACHE_PREFIX changes at
    runtime and you need to reload it.
    """
    get_config.cache_clear()
