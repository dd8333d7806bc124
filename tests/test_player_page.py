"""
Tests for the cached player page.
"""

import pytest

from pugstats.cache.player_page import (
    PAGE_EXCLUDED_GAME_FIELDS,
    PlayerPageCache,
    reverse_teams,
)
from pugstats.cache.store import player_page_key
from pugstats.core.exceptions import NotFoundError
from pugstats.core.models import GameStatus
from pugstats.repositories.memory import InMemoryDataSource

from .conftest import make_settings
from .factories import at, make_game, make_player, make_rating, make_restriction


@pytest.fixture
def history() -> InMemoryDataSource:
    return InMemoryDataSource(
        players=[make_player("p", alias="Pyro", steam_id="76561198000000001")],
        games=[
            make_game("g1", captains=("p", "x"), score=[1, 0], date=at(1), map="cp_process_final"),
            make_game("g2", captains=("x", "p"), score=[0, 1], date=at(2)),
            make_game("g3", rosters=([], ["p"]), score=[3, 3], date=at(3)),
            make_game("g4", rosters=(["p"], []), status=GameStatus.LIVE, date=at(4)),
            make_game("g5", rosters=(["p"], []), status=GameStatus.INITIALIZING, date=at(5)),
            make_game("other", rosters=(["q"], []), date=at(6)),
        ],
        ratings=[
            make_rating("r3", "p", mean=1530, deviation=80, date=at(3)),
            make_rating("r1", "p", mean=1500, deviation=100, date=at(1)),
            make_rating("r2", "p", mean=1510, deviation=90, date=at(2)),
        ],
        restrictions=[
            make_restriction("lifted", "p", active=False, expires=at(1)),
            make_restriction("later", "p", expires=at(10)),
            make_restriction("permanent", "p", expires=None),
            make_restriction("sooner", "p", expires=at(5)),
            make_restriction("someone-else", "q"),
        ],
    )


@pytest.fixture
def pages(history, cache, settings) -> PlayerPageCache:
    return PlayerPageCache(history, cache, settings)


class TestReverseTeams:
    def test_captain_of_first_team(self):
        assert reverse_teams(make_game("g", captains=("p", "x")), "p") is False

    def test_captain_of_second_team(self):
        assert reverse_teams(make_game("g", captains=("x", "p")), "p") is True

    def test_roster_member_of_second_team(self):
        assert reverse_teams(make_game("g", rosters=([], ["p"])), "p") is True

    def test_roster_member_of_first_team(self):
        assert reverse_teams(make_game("g", rosters=(["p"], [])), "p") is False

    def test_captaincy_takes_precedence(self):
        game = make_game("g", captains=("p", "x"), rosters=([], ["p"]))
        assert reverse_teams(game, "p") is False

    def test_absent_player(self):
        assert reverse_teams(make_game("g"), "p") is False


class TestPageContent:
    async def test_sections(self, pages):
        page = await pages.get("p")
        assert set(page) == {"user", "games", "restrictions", "restriction_durations", "ratings"}
        assert page["user"]["id"] == "p"
        assert page["user"]["alias"] == "Pyro"

    async def test_games_newest_first_without_initializing(self, pages):
        page = await pages.get("p")
        assert [game["id"] for game in page["games"]] == ["g4", "g3", "g2", "g1"]

    async def test_game_fields(self, pages):
        page = await pages.get("p")
        by_id = {game["id"]: game for game in page["games"]}

        for game in page["games"]:
            assert PAGE_EXCLUDED_GAME_FIELDS.isdisjoint(game)
        assert by_id["g1"]["map"] == "cp_process_final"
        assert {gid: game["reverse_teams"] for gid, game in by_id.items()} == {
            "g1": False,
            "g2": True,
            "g3": True,
            "g4": False,
        }

    async def test_restriction_order(self, pages):
        page = await pages.get("p")
        assert [r["id"] for r in page["restrictions"]] == ["sooner", "later", "permanent", "lifted"]

    async def test_ratings_oldest_first(self, pages):
        page = await pages.get("p")
        assert [r["id"] for r in page["ratings"]] == ["r1", "r2", "r3"]

    async def test_restriction_durations_from_settings(self, pages, settings):
        page = await pages.get("p")
        assert page["restriction_durations"] == settings.restriction_durations

    async def test_hidden_ratings(self, history, cache):
        pages = PlayerPageCache(history, cache, make_settings(hide_ratings=True))
        page = await pages.get("p")
        assert "ratings" not in page


class TestResolution:
    async def test_by_steam_id(self, pages):
        page = await pages.get("76561198000000001")
        assert page["user"]["id"] == "p"

    async def test_by_alias(self, pages):
        page = await pages.get("Pyro")
        assert page["user"]["id"] == "p"

    async def test_unknown_identifier(self, pages, cache):
        with pytest.raises(NotFoundError):
            await pages.get("nobody")
        assert await cache.get(player_page_key("nobody")) is None


class TestCaching:
    async def test_page_stored_under_player_id(self, pages, cache):
        page = await pages.get("Pyro")
        assert await cache.get(player_page_key("p")) == page

    async def test_cached_page_served_until_invalidated(self, pages, history):
        first = await pages.get("p")
        history.add_game(make_game("g6", rosters=(["p"], []), date=at(7)))

        assert await pages.get("p") == first

        await pages.invalidate("p")
        rebuilt = await pages.get("p")
        assert rebuilt["games"][0]["id"] == "g6"

    async def test_invalidate_without_page(self, pages, cache):
        await pages.invalidate("p")
        assert await cache.get(player_page_key("p")) is None
