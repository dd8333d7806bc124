"""
Player statistics aggregation.

Rolls a player's game and rating history up into the Stats aggregate:
- Captain and roster win/loss/tie records
- Prediction intervals over per-game score differentials
- Draft position histogram
- Per-role appearance counts, lifetime totals and substitutions

The query groups below are independent reads issued concurrently; they do
not observe a single snapshot of the store, so a recompute racing a game
write converges on the next recompute rather than being exact mid-flight.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterable, Optional

from ..core.config import Settings
from ..core.exceptions import NotFoundError
from ..core.models import (
    PLAYER_PICK,
    DraftStat,
    Game,
    Player,
    RatingStats,
    Record,
    Replaced,
    RoleStat,
    ScoreInterval,
    Stats,
    Totals,
)
from ..repositories.base import DataSource
from .intervals import calculate_prediction_interval

logger = logging.getLogger(__name__)

# Score gap that counts as one unit of differential
SCORE_UNIT = 5
# Reference game length (seconds) the differential is normalized to
REFERENCE_DURATION = 1800

TeamLocator = Callable[[Game], Optional[int]]


# =============================================================================
# Per-game helpers
# =============================================================================


def game_outcome(game: Game, team_index: int) -> str:
    """Return 'win', 'loss' or 'tie' for the given side of a scored game."""
    own = game.score[team_index]
    other = game.score[1 - team_index]
    if own > other:
        return "win"
    if own < other:
        return "loss"
    return "tie"


def game_differential(game: Game, team_index: int) -> float:
    """
    Score differential for one side, normalized by game length.

    (own - other) / 5, divided by duration / 1800 when a duration is known.
    """
    own = game.score[team_index]
    other = game.score[1 - team_index]
    differential = (own - other) / SCORE_UNIT
    duration = game.duration / REFERENCE_DURATION if game.duration else 1
    return differential / duration


def tally_record(games: Iterable[Game], locate: TeamLocator) -> Record:
    record = Record()
    for game in games:
        team_index = locate(game)
        if team_index is None:
            continue
        outcome = game_outcome(game, team_index)
        setattr(record, outcome, getattr(record, outcome) + 1)
    return record


def score_interval(games: Iterable[Game], locate: TeamLocator) -> ScoreInterval:
    samples = []
    for game in games:
        team_index = locate(game)
        if team_index is None:
            continue
        samples.append(game_differential(game, team_index))
    return calculate_prediction_interval(samples)


def pick_position(game: Game, player_id: str) -> int:
    """1-based position of the player's pick among playerPick choices."""
    position = 0
    for choice in game.draft.choices:
        if choice.type == PLAYER_PICK:
            position += 1
            if choice.player == player_id:
                break
    return position


# =============================================================================
# Aggregator
# =============================================================================


class StatsAggregator:
    """Computes a player's full Stats object from the data source."""

    def __init__(self, data_source: DataSource, settings: Settings):
        self.data_source = data_source
        self.roles = list(settings.roles)
        self.draft_player_picks = settings.draft_player_picks

    async def compute(self, player_id: str) -> Stats:
        """
        Compute stats for a player.

        Args:
            player_id: Player ID

        Returns:
            Freshly computed Stats (not persisted)

        Raises:
            NotFoundError: If the player does not exist
        """
        player = await self.data_source.find_user(player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        return await self.compute_for(player)

    async def compute_for(self, player: Player) -> Stats:
        """Compute stats for an already-loaded player record."""
        start_time = time.time()
        player_id = player.id

        (
            captain_games,
            roster_games,
            picked_games,
            captain_count,
            roster_count,
            undrafted_count,
            latest_rating,
            roles,
            replaced_into,
            replaced_out,
        ) = await asyncio.gather(
            self.data_source.find_completed_games_as_captain(player_id),
            self.data_source.find_completed_games_as_roster(player_id),
            self.data_source.find_games_where_picked(player_id),
            self.data_source.count_games_as_captain(player_id),
            self.data_source.count_games_as_roster(player_id),
            self.data_source.count_games_in_pool_undrafted(player_id),
            self.data_source.latest_rating(player_id),
            self._role_counts(player_id),
            self.data_source.count_substituted_in(player_id),
            self.data_source.count_substituted_out(player_id),
        )

        def as_captain(game: Game) -> Optional[int]:
            return game.captain_team_index(player_id)

        def as_roster(game: Game) -> Optional[int]:
            return game.roster_team_index(player_id)

        if latest_rating is not None:
            rating = RatingStats(
                mean=latest_rating.after.mean,
                deviation=latest_rating.after.deviation,
                low=player.stats.rating.low,
                high=player.stats.rating.high,
            )
        else:
            rating = player.stats.rating.model_copy()

        stats = Stats(
            rating=rating,
            captain_record=tally_record(captain_games, as_captain),
            player_record=tally_record(roster_games, as_roster),
            captain_score=score_interval(captain_games, as_captain),
            player_score=score_interval(roster_games, as_roster),
            draft=self._draft_stats(player_id, picked_games, captain_count, undrafted_count),
            roles=roles,
            total=Totals(captain=captain_count, player=roster_count),
            replaced=Replaced(into=replaced_into, out=replaced_out),
        )

        elapsed = time.time() - start_time
        logger.debug(
            f"Computed stats for player {player_id} in {elapsed:.3f}s "
            f"({len(captain_games)} captain games, {len(roster_games)} roster games)"
        )
        return stats

    async def _role_counts(self, player_id: str) -> list[RoleStat]:
        counts = await asyncio.gather(
            *[self.data_source.count_games_by_role(role, player_id) for role in self.roles]
        )
        return [RoleStat(role=role, count=count) for role, count in zip(self.roles, counts)]

    def _draft_stats(
        self,
        player_id: str,
        picked_games: list[Game],
        captain_count: int,
        undrafted_count: int,
    ) -> list[DraftStat]:
        positions = {position: 0 for position in range(1, self.draft_player_picks + 1)}
        for game in picked_games:
            position = pick_position(game, player_id)
            positions[position] = positions.get(position, 0) + 1

        draft = [DraftStat(type="captain", count=captain_count)]
        draft.extend(
            DraftStat(type="picked", position=position, count=count)
            for position, count in sorted(positions.items())
        )
        draft.append(DraftStat(type="undrafted", count=undrafted_count))
        return draft
