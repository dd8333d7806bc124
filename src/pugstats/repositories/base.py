"""
Base data source protocol.

Defines the abstract, async query surface the stats engine consumes.
Each method is an independent, idempotent read (or, for
save_player_stats, a single whole-object write); implementations do not
provide a consistent snapshot across calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..core.models import Game, Player, Rating, Restriction, Stats


class DataSource(ABC):
    """
    Abstract interface for player, game, rating and restriction access.

    Implementations raise DataSourceUnavailableError when the backing
    store cannot be reached.
    """

    # =========================================================================
    # Players
    # =========================================================================

    @abstractmethod
    async def find_user(self, player_id: str) -> Optional[Player]:
        """Find a player by ID, or None."""
        ...

    @abstractmethod
    async def find_user_by_steam_id(self, steam_id: str) -> Optional[Player]:
        """Find a player by Steam ID, or None."""
        ...

    @abstractmethod
    async def find_user_by_alias(self, alias: str) -> Optional[Player]:
        """Find a player by alias, or None."""
        ...

    @abstractmethod
    async def find_all_users(self) -> list[Player]:
        """Return every player."""
        ...

    @abstractmethod
    async def save_player_stats(self, player_id: str, stats: Stats) -> None:
        """
        Replace a player's stats in a single write.

        Either the whole Stats object is stored or nothing changes.

        Raises:
            NotFoundError: If the player no longer exists
        """
        ...

    # =========================================================================
    # Captain / roster appearances
    # =========================================================================

    @abstractmethod
    async def count_games_as_captain(self, player_id: str) -> int:
        """Count games (any status) in which the player captained a team."""
        ...

    @abstractmethod
    async def count_games_as_roster(self, player_id: str) -> int:
        """Count games (any status) in which the player sat on a roster."""
        ...

    @abstractmethod
    async def find_completed_games_as_captain(self, player_id: str) -> list[Game]:
        """Completed, scored games the player captained."""
        ...

    @abstractmethod
    async def find_completed_games_as_roster(self, player_id: str) -> list[Game]:
        """Completed, scored games with the player on a roster."""
        ...

    # =========================================================================
    # Draft
    # =========================================================================

    @abstractmethod
    async def count_games_where_picked(self, player_id: str) -> int:
        """Count games where a playerPick choice selected the player."""
        ...

    @abstractmethod
    async def find_games_where_picked(self, player_id: str) -> list[Game]:
        """Games where a playerPick choice selected the player."""
        ...

    @abstractmethod
    async def count_games_in_pool_undrafted(self, player_id: str) -> int:
        """Count games with the player in the draft pool but never picked nor captain."""
        ...

    # =========================================================================
    # Roles and substitutions
    # =========================================================================

    @abstractmethod
    async def count_games_by_role(self, role: str, player_id: str) -> int:
        """Count games where the player filled the given role."""
        ...

    @abstractmethod
    async def count_substituted_in(self, player_id: str) -> int:
        """Count roster appearances where the player was neither picked nor captain."""
        ...

    @abstractmethod
    async def count_substituted_out(self, player_id: str) -> int:
        """Count games where the player's roster slot is flagged as replaced."""
        ...

    # =========================================================================
    # Ratings, history, restrictions
    # =========================================================================

    @abstractmethod
    async def latest_rating(self, player_id: str) -> Optional[Rating]:
        """Most recent rating snapshot by date, or None."""
        ...

    @abstractmethod
    async def all_ratings(self, player_id: str) -> list[Rating]:
        """Every rating snapshot for the player (unordered)."""
        ...

    @abstractmethod
    async def find_player_history_games(self, player_id: str) -> list[Game]:
        """Games past the initializing stage with the player as captain or roster member, newest first."""
        ...

    @abstractmethod
    async def find_restrictions(self, player_id: str) -> list[Restriction]:
        """Every restriction recorded against the player."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
