"""
Cached per-player page.

A page bundles the player's profile, game history, restrictions and
(unless ratings are hidden) rating history. It is built lazily on the
first read after an invalidation; invalidation only deletes the entry.

A miss is rebuilt under the same per-player lock the stats coordinator
holds while recomputing, so a page assembled from pre-recompute data can
never be written after the recompute has invalidated it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..core.config import Settings
from ..core.exceptions import NotFoundError
from ..core.models import Game, Player, Rating, Restriction
from ..repositories.base import DataSource
from .locks import KeyedLocks
from .store import ReadThroughCache, player_page_key

logger = logging.getLogger(__name__)

# Game fields not shown on the page
PAGE_EXCLUDED_GAME_FIELDS = {"draft", "server", "links"}

_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def reverse_teams(game: Game, player_id: str) -> bool:
    """Whether the player's team is the second team, captaincy taking precedence over roster membership."""
    if game.teams and game.teams[0].captain == player_id:
        return False
    if len(game.teams) > 1 and game.teams[1].captain == player_id:
        return True
    team_index = game.roster_team_index(player_id)
    return team_index is not None and team_index != 0


def format_page_game(game: Game, player_id: str) -> dict[str, Any]:
    data = game.model_dump(mode="json", exclude=PAGE_EXCLUDED_GAME_FIELDS)
    data["reverse_teams"] = reverse_teams(game, player_id)
    return data


def _restriction_order(restriction: Restriction) -> tuple:
    expires = restriction.expires or _LATEST
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return (not restriction.active, restriction.expires is None, expires)


def sort_restrictions(restrictions: list[Restriction]) -> list[Restriction]:
    """Active first, then soonest-expiring; restrictions without expiry last."""
    return sorted(restrictions, key=_restriction_order)


def sort_ratings(ratings: list[Rating]) -> list[Rating]:
    return sorted(ratings, key=lambda rating: rating.date)


class PlayerPageCache:
    """Lazily rebuilt player pages keyed by player ID."""

    def __init__(
        self,
        data_source: DataSource,
        cache: ReadThroughCache,
        settings: Settings,
        locks: Optional[KeyedLocks] = None,
    ):
        """
        Args:
            data_source: Player store
            cache: Read-through cache holding the pages
            settings: Application settings
            locks: Per-player locks shared with the stats coordinator
        """
        self.data_source = data_source
        self.cache = cache
        self.locks = locks if locks is not None else KeyedLocks()
        self.hide_ratings = settings.hide_ratings
        self.restriction_durations = list(settings.restriction_durations)

    async def resolve(self, identifier: str) -> Player:
        """
        Resolve a player by ID, Steam ID or alias.

        Raises:
            NotFoundError: If nothing matches
        """
        player = await self.data_source.find_user(identifier)
        if player is None:
            player = await self.data_source.find_user_by_steam_id(identifier)
        if player is None:
            player = await self.data_source.find_user_by_alias(identifier)
        if player is None:
            raise NotFoundError("Player", identifier)
        return player

    async def get(self, identifier: str) -> dict[str, Any]:
        """
        Get the page for a player, building and caching it on a miss.

        Args:
            identifier: Player ID, Steam ID or alias

        Returns:
            Page dict

        Raises:
            NotFoundError: If the player does not resolve
        """
        player = await self.resolve(identifier)
        key = player_page_key(player.id)

        page = await self.cache.get(key)
        if page is not None:
            return page

        async with self.locks.hold(player.id):
            page = await self.cache.get(key)
            if page is not None:
                return page

            # Reload: a recompute may have finished while we waited
            player = await self.data_source.find_user(player.id)
            if player is None:
                raise NotFoundError("Player", identifier)

            page = await self.build(player)
            await self.cache.set(key, page)
        return page

    async def build(self, player: Player) -> dict[str, Any]:
        """Assemble a page from the data source without touching the cache."""
        games = await self.data_source.find_player_history_games(player.id)
        restrictions = await self.data_source.find_restrictions(player.id)

        page: dict[str, Any] = {
            "user": player.model_dump(mode="json"),
            "games": [format_page_game(game, player.id) for game in games],
            "restrictions": [r.model_dump(mode="json") for r in sort_restrictions(restrictions)],
            "restriction_durations": self.restriction_durations,
        }

        if not self.hide_ratings:
            ratings = await self.data_source.all_ratings(player.id)
            page["ratings"] = [r.model_dump(mode="json") for r in sort_ratings(ratings)]

        logger.debug(f"Built page for player {player.id}: {len(games)} games")
        return page

    async def invalidate(self, player_id: str) -> None:
        """Drop the cached page; the next read rebuilds it."""
        await self.cache.delete(player_page_key(player_id))
