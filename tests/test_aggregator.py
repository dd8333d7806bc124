"""
Tests for stats aggregation over a player's history.
"""

import pytest

from pugstats.core.exceptions import NotFoundError
from pugstats.core.models import GameStatus
from pugstats.repositories.memory import InMemoryDataSource
from pugstats.stats.aggregator import (
    StatsAggregator,
    game_differential,
    game_outcome,
    pick_position,
)

from .factories import at, make_game, make_player, make_rating


@pytest.fixture
def history() -> InMemoryDataSource:
    """
    Two players:
    - cap: captains g1 (win 10-3) and g2 (tie 2-2) on the first team,
      g7 on the second team (still live)
    - p2: picked 2nd in g3 (second team, wins 1-4), picked 1st in g4
      (first team, tie), undrafted in g5, a substitute in g6 who was
      later replaced
    """
    return InMemoryDataSource(
        players=[
            make_player("cap", rating_low=1400, rating_high=1600),
            make_player("p2"),
            make_player("idle"),
        ],
        games=[
            make_game("g1", captains=("cap", "x"), score=[10, 3]),
            make_game("g2", captains=("cap", "x"), score=[2, 2]),
            make_game("g7", captains=("y", "cap"), status=GameStatus.LIVE),
            make_game(
                "g3",
                rosters=(["a"], [("p2", "medic")]),
                picks=["a", "p2"],
                pool=["a", "p2"],
                score=[1, 4],
            ),
            make_game(
                "g4",
                rosters=([("p2", "scout")], []),
                picks=["p2"],
                pool=["p2"],
                score=[2, 2],
            ),
            make_game("g5", rosters=(["a"], ["b"]), picks=["a", "b"], pool=["a", "b", "p2"]),
            make_game(
                "g6",
                rosters=([("p2", "soldier")], []),
                replaced=["p2"],
                status=GameStatus.ABORTED,
            ),
        ],
        ratings=[
            make_rating("r1", "cap", mean=1500, deviation=100, date=at(1)),
            make_rating("r2", "cap", mean=1520, deviation=90, date=at(3)),
            make_rating("r3", "cap", mean=1480, deviation=95, date=at(2)),
        ],
    )


@pytest.fixture
def aggregator(history, settings) -> StatsAggregator:
    return StatsAggregator(history, settings)


class TestGameHelpers:
    def test_outcome_from_each_side(self):
        game = make_game("g", score=[10, 3])
        assert game_outcome(game, 0) == "win"
        assert game_outcome(game, 1) == "loss"
        assert game_outcome(make_game("t", score=[2, 2]), 1) == "tie"

    def test_differential_scaled_by_score_unit(self):
        game = make_game("g", score=[10, 3])
        assert game_differential(game, 0) == pytest.approx(1.4)
        assert game_differential(game, 1) == pytest.approx(-1.4)

    def test_differential_normalized_by_duration(self):
        game = make_game("g", score=[10, 3], duration=3600)
        assert game_differential(game, 0) == pytest.approx(0.7)

    def test_pick_position_ignores_faction_choices(self):
        game = make_game("g", picks=["a", "b", "c"])
        assert pick_position(game, "a") == 1
        assert pick_position(game, "c") == 3


class TestCaptainStats:
    async def test_record_and_interval(self, aggregator):
        stats = await aggregator.compute("cap")

        assert stats.captain_record.win == 1
        assert stats.captain_record.tie == 1
        assert stats.captain_record.loss == 0
        assert stats.captain_score.center == pytest.approx(0.7)
        assert stats.captain_score.low < 0.7 < stats.captain_score.high

    async def test_totals_count_every_status(self, aggregator):
        stats = await aggregator.compute("cap")
        assert stats.total.captain == 3
        assert stats.total.player == 0

    async def test_record_only_counts_scored_games(self, aggregator):
        stats = await aggregator.compute("cap")
        assert stats.captain_record.games == 2

    async def test_latest_rating_keeps_stored_bounds(self, aggregator):
        stats = await aggregator.compute("cap")
        assert stats.rating.mean == 1520
        assert stats.rating.deviation == 90
        assert stats.rating.low == 1400
        assert stats.rating.high == 1600

    async def test_draft_captain_entry(self, aggregator):
        stats = await aggregator.compute("cap")
        assert stats.draft[0].type == "captain"
        assert stats.draft[0].count == 3


class TestRosterStats:
    async def test_record_located_by_roster_team(self, aggregator):
        stats = await aggregator.compute("p2")

        assert stats.player_record.win == 1
        assert stats.player_record.tie == 1
        assert stats.player_record.loss == 0
        # (4 - 1) / 5 and (2 - 2) / 5
        assert stats.player_score.center == pytest.approx(0.3)

    async def test_draft_histogram(self, aggregator, settings):
        stats = await aggregator.compute("p2")
        draft = [(entry.type, entry.position, entry.count) for entry in stats.draft]

        assert draft == [
            ("captain", None, 0),
            ("picked", 1, 1),
            ("picked", 2, 1),
            ("picked", 3, 0),
            ("picked", 4, 0),
            ("undrafted", None, 1),
        ]
        assert len(stats.draft) == settings.draft_player_picks + 2

    async def test_roles_follow_configured_order(self, aggregator, settings):
        stats = await aggregator.compute("p2")
        assert [role.role for role in stats.roles] == list(settings.roles)
        assert {role.role: role.count for role in stats.roles} == {
            "scout": 1,
            "soldier": 1,
            "medic": 1,
        }

    async def test_totals_and_substitutions(self, aggregator):
        stats = await aggregator.compute("p2")
        assert stats.total.player == 3
        assert stats.replaced.into == 1
        assert stats.replaced.out == 1

    async def test_tallies_match_scored_roster_games(self, history, aggregator):
        stats = await aggregator.compute("p2")
        scored = await history.find_completed_games_as_roster("p2")
        assert stats.player_record.games == len(scored)


class TestEmptyHistory:
    async def test_player_without_games(self, aggregator, settings):
        stats = await aggregator.compute("idle")

        assert stats.captain_record.games == 0
        assert stats.player_record.games == 0
        assert stats.captain_score.center is None
        assert stats.player_score.low is None
        assert stats.total.captain == 0
        assert stats.total.player == 0
        assert stats.rating.mean is None
        assert sum(entry.count for entry in stats.draft) == 0
        assert len(stats.draft) == settings.draft_player_picks + 2

    async def test_unknown_player(self, aggregator):
        with pytest.raises(NotFoundError) as exc_info:
            await aggregator.compute("nobody")
        assert exc_info.value.identifier == "nobody"
