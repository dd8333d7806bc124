"""
PostgreSQL implementation of the DataSource.

Teams and drafts are JSONB documents; membership filters are SQL/JSON
path expressions evaluated with jsonb_path_exists, with the player ID
passed as a path variable rather than interpolated.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from psycopg.types.json import Jsonb

from ..core.exceptions import NotFoundError
from ..core.models import Game, GameStatus, Player, Rating, Restriction, Stats
from ..pg_async import AsyncPostgresDB
from .base import DataSource

logger = logging.getLogger(__name__)


# =============================================================================
# JSON path predicates ($p is the player ID, $r the role)
# =============================================================================

CAPTAIN = "jsonb_path_exists(teams, '$[*] ? (@.captain == $p)', %s)"
ROSTER = "jsonb_path_exists(teams, '$[*].composition[*].players[*] ? (@.user == $p)', %s)"
PICKED = "jsonb_path_exists(draft, '$.choices[*] ? (@.type == \"playerPick\" && @.player == $p)', %s)"
IN_POOL = "jsonb_path_exists(draft, '$.pool.players[*] ? (@.user == $p)', %s)"
IN_ROLE = (
    "jsonb_path_exists(teams, '$[*].composition[*] ? (@.role == $r && exists(@.players[*] ? (@.user == $p)))', %s)"
)
REPLACED_OUT = (
    "jsonb_path_exists(teams, '$[*].composition[*].players[*] ? (@.user == $p && @.replaced == true)', %s)"
)
SCORED = "status = 'completed' AND score IS NOT NULL"

PLAYER_COLUMNS = "id, alias, steam_id, authorized, groups, stats"
GAME_COLUMNS = "id, date, status, teams, score, duration, draft, server, links"
RATING_COLUMNS = 'id, user_id AS "user", game_id AS game, date, before, after'
RESTRICTION_COLUMNS = 'id, user_id AS "user", active, expires, aspects, reason'


def _vars(player_id: str, **extra: Any) -> Jsonb:
    return Jsonb({"p": player_id, **extra})


def _player(row: Optional[dict[str, Any]]) -> Optional[Player]:
    return Player.model_validate(row) if row else None


def _game(row: dict[str, Any]) -> Game:
    data = dict(row)
    if data.get("links") is None:
        data["links"] = []
    if data.get("draft") is None:
        data.pop("draft", None)
    return Game.model_validate(data)


class PostgresDataSource(DataSource):
    """DataSource backed by AsyncPostgresDB."""

    def __init__(self, db: AsyncPostgresDB):
        self.db = db

    async def _count(self, where: str, params: tuple) -> int:
        value = await self.db.fetchval(f"SELECT COUNT(*) AS count FROM games WHERE {where}", params)
        return int(value or 0)

    async def _games(self, where: str, params: tuple, order: str = "") -> list[Game]:
        rows = await self.db.fetchall(f"SELECT {GAME_COLUMNS} FROM games WHERE {where} {order}", params)
        return [_game(row) for row in rows]

    # =========================================================================
    # Players
    # =========================================================================

    async def find_user(self, player_id: str) -> Optional[Player]:
        row = await self.db.fetchone(f"SELECT {PLAYER_COLUMNS} FROM players WHERE id = %s", (player_id,))
        return _player(row)

    async def find_user_by_steam_id(self, steam_id: str) -> Optional[Player]:
        row = await self.db.fetchone(f"SELECT {PLAYER_COLUMNS} FROM players WHERE steam_id = %s", (steam_id,))
        return _player(row)

    async def find_user_by_alias(self, alias: str) -> Optional[Player]:
        row = await self.db.fetchone(f"SELECT {PLAYER_COLUMNS} FROM players WHERE alias = %s", (alias,))
        return _player(row)

    async def find_all_users(self) -> list[Player]:
        rows = await self.db.fetchall(f"SELECT {PLAYER_COLUMNS} FROM players ORDER BY id")
        return [Player.model_validate(row) for row in rows]

    async def save_player_stats(self, player_id: str, stats: Stats) -> None:
        updated = await self.db.execute(
            "UPDATE players SET stats = %s, updated_at = NOW() WHERE id = %s",
            (Jsonb(stats.model_dump(mode="json")), player_id),
        )
        if not updated:
            raise NotFoundError("Player", player_id)

    # =========================================================================
    # Captain / roster appearances
    # =========================================================================

    async def count_games_as_captain(self, player_id: str) -> int:
        return await self._count(CAPTAIN, (_vars(player_id),))

    async def count_games_as_roster(self, player_id: str) -> int:
        return await self._count(ROSTER, (_vars(player_id),))

    async def find_completed_games_as_captain(self, player_id: str) -> list[Game]:
        return await self._games(f"{SCORED} AND {CAPTAIN}", (_vars(player_id),))

    async def find_completed_games_as_roster(self, player_id: str) -> list[Game]:
        return await self._games(f"{SCORED} AND {ROSTER}", (_vars(player_id),))

    # =========================================================================
    # Draft
    # =========================================================================

    async def count_games_where_picked(self, player_id: str) -> int:
        return await self._count(PICKED, (_vars(player_id),))

    async def find_games_where_picked(self, player_id: str) -> list[Game]:
        return await self._games(PICKED, (_vars(player_id),))

    async def count_games_in_pool_undrafted(self, player_id: str) -> int:
        variables = _vars(player_id)
        return await self._count(
            f"{IN_POOL} AND NOT {PICKED} AND NOT {CAPTAIN}",
            (variables, variables, variables),
        )

    # =========================================================================
    # Roles and substitutions
    # =========================================================================

    async def count_games_by_role(self, role: str, player_id: str) -> int:
        return await self._count(IN_ROLE, (_vars(player_id, r=role),))

    async def count_substituted_in(self, player_id: str) -> int:
        variables = _vars(player_id)
        return await self._count(
            f"{ROSTER} AND NOT {PICKED} AND NOT {CAPTAIN}",
            (variables, variables, variables),
        )

    async def count_substituted_out(self, player_id: str) -> int:
        return await self._count(REPLACED_OUT, (_vars(player_id),))

    # =========================================================================
    # Ratings, history, restrictions
    # =========================================================================

    async def latest_rating(self, player_id: str) -> Optional[Rating]:
        row = await self.db.fetchone(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = %s ORDER BY date DESC LIMIT 1",
            (player_id,),
        )
        return Rating.model_validate(row) if row else None

    async def all_ratings(self, player_id: str) -> list[Rating]:
        rows = await self.db.fetchall(f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = %s", (player_id,))
        return [Rating.model_validate(row) for row in rows]

    async def find_player_history_games(self, player_id: str) -> list[Game]:
        variables = _vars(player_id)
        return await self._games(
            f"status <> %s AND ({CAPTAIN} OR {ROSTER})",
            (GameStatus.INITIALIZING, variables, variables),
            order="ORDER BY date DESC NULLS LAST",
        )

    async def find_restrictions(self, player_id: str) -> list[Restriction]:
        rows = await self.db.fetchall(
            f"SELECT {RESTRICTION_COLUMNS} FROM restrictions WHERE user_id = %s",
            (player_id,),
        )
        return [Restriction.model_validate(row) for row in rows]

    async def close(self) -> None:
        await self.db.close()
