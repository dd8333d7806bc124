"""
Services module for pugstats.

This module provides the orchestration layer:
- players: PlayerService, the read/update surface used by the API and CLI
- coordinator: Recompute -> persist -> invalidate -> schedule sequencing

Usage:
    from pugstats.services import create_player_service
"""

from .coordinator import StatsUpdateCoordinator
from .players import PlayerService, create_player_service

__all__ = [
    "PlayerService",
    "StatsUpdateCoordinator",
    "create_player_service",
]
