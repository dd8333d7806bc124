"""
Core module for pugstats.

This module provides the foundational components:
- Configuration management (config.py)
- Data models (models.py)
- Domain errors (exceptions.py)

Usage:
    from pugstats.core import Settings, get_settings
    from pugstats.core import Player, Game, Stats
    from pugstats.core import NotFoundError
"""

# Configuration
from .config import Settings, get_settings

# Errors
from .exceptions import (
    PugStatsError,
    NotFoundError,
    DataSourceUnavailableError,
    CacheUnavailableError,
    MalformedCacheEntryError,
)

# Models
from .models import (
    Game,
    GameStatus,
    Player,
    Rating,
    Restriction,
    ScoreInterval,
    Stats,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "PugStatsError",
    "NotFoundError",
    "DataSourceUnavailableError",
    "CacheUnavailableError",
    "MalformedCacheEntryError",
    # Models
    "Game",
    "GameStatus",
    "Player",
    "Rating",
    "Restriction",
    "ScoreInterval",
    "Stats",
]
