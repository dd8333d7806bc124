"""
Stats update coordinator.

Entry point for "this player's history changed". Sequencing:

1. invalidate the player's page
2. recompute stats and persist them as one write
3. invalidate the page again
4. schedule the debounced player list rebuild

Recomputes for the same player are serialized with a per-player lock. The
page cache rebuilds misses under the same lock, so no page built from the
old stats can land in the cache once an update has returned.
"""

from __future__ import annotations

import logging
import time

from ..cache.locks import KeyedLocks
from ..cache.player_list import PlayerListProjector
from ..cache.player_page import PlayerPageCache
from ..core.models import Stats
from ..repositories.base import DataSource
from ..stats.aggregator import StatsAggregator

logger = logging.getLogger(__name__)


class StatsUpdateCoordinator:
    """Recomputes, persists and propagates a player's stats."""

    def __init__(
        self,
        data_source: DataSource,
        aggregator: StatsAggregator,
        pages: PlayerPageCache,
        lists: PlayerListProjector,
    ):
        self.data_source = data_source
        self.aggregator = aggregator
        self.pages = pages
        self.lists = lists
        self._locks = pages.locks

    @property
    def locks(self) -> KeyedLocks:
        return self._locks

    async def update_player_stats(self, player_id: str) -> Stats:
        """
        Recompute and persist a player's stats.

        Args:
            player_id: Player ID

        Returns:
            The stats that were written

        Raises:
            NotFoundError: If the player does not exist
            DataSourceUnavailableError: If the store fails; nothing is written
        """
        async with self._locks.hold(player_id):
            start_time = time.time()

            await self.pages.invalidate(player_id)
            stats = await self.aggregator.compute(player_id)
            await self.data_source.save_player_stats(player_id, stats)
            await self.pages.invalidate(player_id)

            logger.info(f"Updated stats for player {player_id} in {time.time() - start_time:.3f}s")

        self.lists.schedule()
        return stats

    async def player_updated(self, player_id: str) -> None:
        """Propagate a non-stats change to a player (alias, groups, authorization)."""
        async with self._locks.hold(player_id):
            await self.pages.invalidate(player_id)
        self.lists.schedule()

    async def update_all_player_stats(self) -> dict[str, int]:
        """
        Recompute every player, one at a time.

        Returns:
            Counts of updated and failed players
        """
        players = await self.data_source.find_all_users()
        updated = 0
        failed = 0

        for player in players:
            try:
                await self.update_player_stats(player.id)
                updated += 1
            except Exception as e:
                failed += 1
                logger.error(f"Failed to update stats for player {player.id}: {e}")

        logger.info(f"Stats backfill complete: {updated} updated, {failed} failed")
        return {"updated": updated, "failed": failed}
