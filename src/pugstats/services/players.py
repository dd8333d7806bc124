"""
Player service - the cache surface called by the web and CLI layers.

Wires the data source, cache, aggregator, list projector, page cache and
update coordinator together. Shared handles are passed in explicitly;
nothing here is a module-level singleton.

Usage:
    service = await create_player_service(settings)
    players = await service.get_player_list(include_inactive=False)
    page = await service.get_player_page("76561198000000000")
    await service.update_player_stats(player_id)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..cache.locks import KeyedLocks
from ..cache.player_list import PlayerListProjector
from ..cache.player_page import PlayerPageCache
from ..cache.store import ReadThroughCache, create_cache
from ..core.config import Settings
from ..core.models import Stats
from ..repositories import create_data_source
from ..repositories.base import DataSource
from ..stats.aggregator import StatsAggregator
from .coordinator import StatsUpdateCoordinator

logger = logging.getLogger(__name__)


class PlayerService:
    """Read and update entry points for player stats, lists and pages."""

    def __init__(self, data_source: DataSource, cache: ReadThroughCache, settings: Settings):
        self.settings = settings
        self.data_source = data_source
        self.cache = cache
        self.aggregator = StatsAggregator(data_source, settings)
        self.lists = PlayerListProjector(data_source, cache, settings)
        self.locks = KeyedLocks()
        self.pages = PlayerPageCache(data_source, cache, settings, locks=self.locks)
        self.coordinator = StatsUpdateCoordinator(data_source, self.aggregator, self.pages, self.lists)

    async def get_player_list(self, include_inactive: bool = False) -> list[dict[str, Any]]:
        """Ranked player listings; inactive players only when requested."""
        return await self.lists.get_player_list(include_inactive)

    async def get_player_page(self, identifier: str) -> dict[str, Any]:
        """Player page by ID, Steam ID or alias. Raises NotFoundError."""
        return await self.pages.get(identifier)

    async def invalidate_player_page(self, player_id: str) -> None:
        await self.pages.invalidate(player_id)

    async def update_player_stats(self, player_id: str) -> Stats:
        return await self.coordinator.update_player_stats(player_id)

    async def player_updated(self, player_id: str) -> None:
        await self.coordinator.player_updated(player_id)

    async def refresh_player_lists(self) -> dict[str, list[dict[str, Any]]]:
        """Rebuild both player lists immediately."""
        return await self.lists.flush()

    def warm(self) -> None:
        """Schedule the initial list build (debounced, so startup is not blocked)."""
        self.lists.schedule()

    async def close(self) -> None:
        await self.lists.close()
        await self.cache.close()
        await self.data_source.close()


async def create_player_service(
    settings: Settings,
    data_source: Optional[DataSource] = None,
    cache: Optional[ReadThroughCache] = None,
) -> PlayerService:
    """
    Build a PlayerService, creating the data source and cache from settings
    unless they are supplied.
    """
    if data_source is None:
        data_source = await create_data_source(settings)
    if cache is None:
        cache = await create_cache(settings)
    return PlayerService(data_source, cache, settings)
