"""
pugstats - cached player statistics for pick-up game matchmaking.

Derives each player's statistics (win/loss records, score prediction
intervals, draft tendencies, role counts) from the game log and serves
them through a read-through cache:

- Player lists rebuilt on a debounced schedule
- Player pages rebuilt lazily after invalidation
- Per-player serialized recomputes

Usage:
    from pugstats import create_player_service, get_settings

    service = await create_player_service(get_settings())
    players = await service.get_player_list()
    await service.update_player_stats(player_id)
"""

from .core.config import Settings, get_settings
from .core.exceptions import (
    DataSourceUnavailableError,
    NotFoundError,
    PugStatsError,
)
from .services.players import PlayerService, create_player_service

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "PugStatsError",
    "NotFoundError",
    "DataSourceUnavailableError",
    "PlayerService",
    "create_player_service",
]
