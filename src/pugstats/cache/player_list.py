"""
Cached player rankings.

Keeps `allPlayerList` and `activePlayerList` in step with the player
collection. Rebuilds are debounced (quiet period plus a hard maximum wait)
and both lists are written in one cache operation.
"""

from __future__ import annotations

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from ..core.config import Settings
from ..core.models import Player
from ..repositories.base import DataSource
from .debounce import Debouncer
from .store import ACTIVE_PLAYER_LIST_KEY, ALL_PLAYER_LIST_KEY, ReadThroughCache

logger = logging.getLogger(__name__)


def round_half_away(value: Optional[float], digits: int = 0) -> Optional[float | int]:
    """Round half away from zero; None passes through. Zero digits yields an int."""
    if value is None:
        return None
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def _descending_nulls_last(value: Optional[float]) -> tuple[bool, float]:
    return (value is None, -value if value is not None else 0.0)


def ranking_key(player: Player) -> tuple:
    """Sort key: rating mean, then player score, then captain score; all descending, None last."""
    stats = player.stats
    return (
        _descending_nulls_last(stats.rating.mean),
        _descending_nulls_last(stats.player_score.center),
        _descending_nulls_last(stats.captain_score.center),
    )


def format_player_listing(player: Player, include_rating: bool) -> dict[str, Any]:
    """
    Public listing for one player.

    Args:
        player: Player record
        include_rating: Include rounded rating and score fields

    Returns:
        Listing dict
    """
    listing: dict[str, Any] = {
        "id": player.id,
        "alias": player.alias,
        "steam_id": player.steam_id,
        "groups": list(player.groups),
    }
    if not include_rating:
        return listing

    stats = player.stats
    listing.update(
        {
            "rating_mean": round_half_away(stats.rating.mean),
            "rating_deviation": round_half_away(stats.rating.deviation),
            "rating_lower_bound": round_half_away(stats.rating.low),
            "rating_upper_bound": round_half_away(stats.rating.high),
            "captain_score": round_half_away(stats.captain_score.center, 3),
            "player_score": round_half_away(stats.player_score.center, 3),
        }
    )
    return listing


class PlayerListProjector:
    """Builds and serves the cached player lists."""

    def __init__(self, data_source: DataSource, cache: ReadThroughCache, settings: Settings):
        self.data_source = data_source
        self.cache = cache
        self.include_rating = not settings.hide_ratings
        self._debouncer = Debouncer(
            self.recompute,
            wait=settings.list_debounce_wait,
            max_wait=settings.list_debounce_max_wait,
            name="player list rebuild",
        )

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    async def recompute(self) -> dict[str, list[dict[str, Any]]]:
        """
        Rebuild both lists and write them to the cache.

        Returns:
            Mapping of cache key to the list written
        """
        start_time = time.time()
        players = sorted(await self.data_source.find_all_users(), key=ranking_key)

        all_players = [format_player_listing(p, self.include_rating) for p in players]
        active_players = [
            format_player_listing(p, self.include_rating) for p in players if p.is_active
        ]
        lists = {
            ALL_PLAYER_LIST_KEY: all_players,
            ACTIVE_PLAYER_LIST_KEY: active_players,
        }
        await self.cache.set_many(lists)

        logger.info(
            f"Rebuilt player lists: {len(all_players)} players, {len(active_players)} active "
            f"in {time.time() - start_time:.3f}s"
        )
        return lists

    def schedule(self) -> None:
        """Request a debounced rebuild."""
        self._debouncer.trigger()

    async def flush(self) -> dict[str, list[dict[str, Any]]]:
        """Rebuild now (or join the rebuild in flight)."""
        return await self._debouncer.flush()

    async def get_player_list(self, include_inactive: bool) -> list[dict[str, Any]]:
        """
        Read a cached list, rebuilding synchronously on a cold cache.

        Args:
            include_inactive: Return every player rather than only active ones

        Returns:
            List of player listings in ranking order
        """
        key = ALL_PLAYER_LIST_KEY if include_inactive else ACTIVE_PLAYER_LIST_KEY

        players = await self.cache.get(key)
        if players is not None:
            return players

        logger.info(f"Cache miss for {key}, rebuilding player lists")
        lists = await self.flush()

        players = await self.cache.get(key)
        if players is None:
            players = lists[key]
        return players

    async def close(self) -> None:
        await self._debouncer.close()
