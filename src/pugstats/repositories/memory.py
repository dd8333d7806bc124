"""
In-memory data source.

Used by the test suite and for local development without PostgreSQL.
Every query yields to the event loop once so that interleaving behaves
like a networked store.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from ..core.exceptions import NotFoundError
from ..core.models import PLAYER_PICK, Game, GameStatus, Player, Rating, Restriction, Stats
from .base import DataSource

logger = logging.getLogger(__name__)


def _was_picked(game: Game, player_id: str) -> bool:
    return any(
        choice.type == PLAYER_PICK and choice.player == player_id
        for choice in game.draft.choices
    )


def _is_captain(game: Game, player_id: str) -> bool:
    return game.captain_team_index(player_id) is not None


def _is_roster(game: Game, player_id: str) -> bool:
    return game.roster_team_index(player_id) is not None


def _in_pool(game: Game, player_id: str) -> bool:
    return any(entry.user == player_id for entry in game.draft.pool.players)


class InMemoryDataSource(DataSource):
    """Dict-backed DataSource holding validated models."""

    def __init__(
        self,
        players: Iterable[Player] = (),
        games: Iterable[Game] = (),
        ratings: Iterable[Rating] = (),
        restrictions: Iterable[Restriction] = (),
    ):
        self._players: dict[str, Player] = {}
        self._games: dict[str, Game] = {}
        self._ratings: dict[str, Rating] = {}
        self._restrictions: dict[str, Restriction] = {}

        for player in players:
            self.add_player(player)
        for game in games:
            self.add_game(game)
        for rating in ratings:
            self.add_rating(rating)
        for restriction in restrictions:
            self.add_restriction(restriction)

    @classmethod
    def from_fixture(cls, path: str | Path) -> "InMemoryDataSource":
        """
        Load a JSON fixture with players, games, ratings and restrictions.

        Args:
            path: Fixture file path

        Returns:
            Populated InMemoryDataSource
        """
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)

        source = cls(
            players=[Player.model_validate(p) for p in data.get("players", [])],
            games=[Game.model_validate(g) for g in data.get("games", [])],
            ratings=[Rating.model_validate(r) for r in data.get("ratings", [])],
            restrictions=[Restriction.model_validate(r) for r in data.get("restrictions", [])],
        )
        logger.info(
            f"Loaded fixture {path}: {len(source._players)} players, "
            f"{len(source._games)} games, {len(source._ratings)} ratings"
        )
        return source

    # =========================================================================
    # Seeding
    # =========================================================================

    def add_player(self, player: Player) -> None:
        self._players[player.id] = player.model_copy(deep=True)

    def add_game(self, game: Game) -> None:
        self._games[game.id] = game.model_copy(deep=True)

    def add_rating(self, rating: Rating) -> None:
        self._ratings[rating.id] = rating.model_copy(deep=True)

    def add_restriction(self, restriction: Restriction) -> None:
        self._restrictions[restriction.id] = restriction.model_copy(deep=True)

    def _select_games(self, predicate) -> list[Game]:
        return [game.model_copy(deep=True) for game in self._games.values() if predicate(game)]

    def _count_games(self, predicate) -> int:
        return sum(1 for game in self._games.values() if predicate(game))

    # =========================================================================
    # Players
    # =========================================================================

    async def find_user(self, player_id: str) -> Optional[Player]:
        await asyncio.sleep(0)
        player = self._players.get(player_id)
        return player.model_copy(deep=True) if player else None

    async def find_user_by_steam_id(self, steam_id: str) -> Optional[Player]:
        await asyncio.sleep(0)
        for player in self._players.values():
            if player.steam_id == steam_id:
                return player.model_copy(deep=True)
        return None

    async def find_user_by_alias(self, alias: str) -> Optional[Player]:
        await asyncio.sleep(0)
        for player in self._players.values():
            if player.alias == alias:
                return player.model_copy(deep=True)
        return None

    async def find_all_users(self) -> list[Player]:
        await asyncio.sleep(0)
        return [player.model_copy(deep=True) for player in self._players.values()]

    async def save_player_stats(self, player_id: str, stats: Stats) -> None:
        await asyncio.sleep(0)
        player = self._players.get(player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        self._players[player_id] = player.model_copy(update={"stats": stats.model_copy(deep=True)})

    # =========================================================================
    # Captain / roster appearances
    # =========================================================================

    async def count_games_as_captain(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(lambda game: _is_captain(game, player_id))

    async def count_games_as_roster(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(lambda game: _is_roster(game, player_id))

    async def find_completed_games_as_captain(self, player_id: str) -> list[Game]:
        await asyncio.sleep(0)
        return self._select_games(lambda game: game.is_scored and _is_captain(game, player_id))

    async def find_completed_games_as_roster(self, player_id: str) -> list[Game]:
        await asyncio.sleep(0)
        return self._select_games(lambda game: game.is_scored and _is_roster(game, player_id))

    # =========================================================================
    # Draft
    # =========================================================================

    async def count_games_where_picked(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(lambda game: _was_picked(game, player_id))

    async def find_games_where_picked(self, player_id: str) -> list[Game]:
        await asyncio.sleep(0)
        return self._select_games(lambda game: _was_picked(game, player_id))

    async def count_games_in_pool_undrafted(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(
            lambda game: _in_pool(game, player_id)
            and not _was_picked(game, player_id)
            and not _is_captain(game, player_id)
        )

    # =========================================================================
    # Roles and substitutions
    # =========================================================================

    async def count_games_by_role(self, role: str, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(
            lambda game: any(
                assignment.role == role
                and any(slot.user == player_id for slot in assignment.players)
                for team in game.teams
                for assignment in team.composition
            )
        )

    async def count_substituted_in(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(
            lambda game: _is_roster(game, player_id)
            and not _was_picked(game, player_id)
            and not _is_captain(game, player_id)
        )

    async def count_substituted_out(self, player_id: str) -> int:
        await asyncio.sleep(0)
        return self._count_games(
            lambda game: any(
                slot.user == player_id and slot.replaced
                for team in game.teams
                for assignment in team.composition
                for slot in assignment.players
            )
        )

    # =========================================================================
    # Ratings, history, restrictions
    # =========================================================================

    async def latest_rating(self, player_id: str) -> Optional[Rating]:
        await asyncio.sleep(0)
        ratings = [r for r in self._ratings.values() if r.user == player_id]
        if not ratings:
            return None
        return max(ratings, key=lambda r: r.date).model_copy(deep=True)

    async def all_ratings(self, player_id: str) -> list[Rating]:
        await asyncio.sleep(0)
        return [r.model_copy(deep=True) for r in self._ratings.values() if r.user == player_id]

    async def find_player_history_games(self, player_id: str) -> list[Game]:
        await asyncio.sleep(0)
        games = self._select_games(
            lambda game: game.status != GameStatus.INITIALIZING
            and (_is_captain(game, player_id) or _is_roster(game, player_id))
        )
        dated = sorted((g for g in games if g.date is not None), key=lambda g: g.date, reverse=True)
        return dated + [g for g in games if g.date is None]

    async def find_restrictions(self, player_id: str) -> list[Restriction]:
        await asyncio.sleep(0)
        return [r.model_copy(deep=True) for r in self._restrictions.values() if r.user == player_id]
