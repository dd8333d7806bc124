"""
API tests for the players router and health endpoints.

Runs the app against an in-memory data source and cache through
Starlette's TestClient.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from starlette.testclient import TestClient

from pugstats.api.main import create_app
from pugstats.cache.store import InMemoryBackend, ReadThroughCache
from pugstats.core.exceptions import DataSourceUnavailableError
from pugstats.repositories.memory import InMemoryDataSource
from pugstats.services.players import PlayerService

from .conftest import make_settings
from .factories import make_game, make_player

PREFIX = "/api/v1/players"


@pytest.fixture
def data_source() -> InMemoryDataSource:
    return InMemoryDataSource(
        players=[
            make_player("cap", alias="Cap", steam_id="76561198000000002", rating_mean=1550, captain_games=2),
            make_player("bench", alias="Bench"),
        ],
        games=[
            make_game("g1", captains=("cap", "x"), score=[10, 3]),
            make_game("g2", captains=("cap", "x"), score=[2, 2]),
        ],
    )


@pytest.fixture
def client(data_source):
    settings = make_settings()
    service = PlayerService(data_source, ReadThroughCache(InMemoryBackend()), settings)
    with TestClient(create_app(settings, service)) as c:
        yield c


class TestHealthEndpoints:
    def test_health_basic(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_health_cache(self, client):
        r = client.get("/health/cache")
        assert r.status_code == 200
        data = r.json()
        assert data["cache"]["backend"] == "memory"
        for key in ("hits", "misses", "malformed", "entries"):
            assert key in data["cache"]
        assert data["player_lists"]["state"] in ("idle", "pending", "running")
        assert data["players_locked"] == 0

    def test_process_time_header(self, client):
        r = client.get("/health")
        assert r.headers["X-Process-Time"].endswith("ms")


class TestPlayerList:
    def test_active_players_only(self, client):
        r = client.get(PREFIX)
        assert r.status_code == 200
        assert [p["id"] for p in r.json()] == ["cap"]

    def test_include_inactive(self, client):
        r = client.get(PREFIX, params={"include_inactive": "true"})
        assert r.status_code == 200
        assert [p["id"] for p in r.json()] == ["cap", "bench"]

    def test_listing_shape(self, client):
        listing = client.get(PREFIX).json()[0]
        assert listing["alias"] == "Cap"
        assert listing["steam_id"] == "76561198000000002"
        assert listing["rating_mean"] == 1550
        for key in ("rating_deviation", "rating_lower_bound", "rating_upper_bound", "captain_score", "player_score"):
            assert key in listing


class TestPlayerPage:
    def test_by_id(self, client):
        r = client.get(f"{PREFIX}/cap")
        assert r.status_code == 200
        data = r.json()
        assert data["user"]["id"] == "cap"
        assert [g["id"] for g in data["games"]]
        assert all("reverse_teams" in g for g in data["games"])

    def test_by_steam_id(self, client):
        r = client.get(f"{PREFIX}/76561198000000002")
        assert r.status_code == 200
        assert r.json()["user"]["id"] == "cap"

    def test_not_found_envelope(self, client):
        r = client.get(f"{PREFIX}/nobody")
        assert r.status_code == 404
        error = r.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["detail"] == "Player with identifier nobody"
        assert "message" in error

    def test_data_source_failure_is_503(self, client, data_source, monkeypatch):
        monkeypatch.setattr(
            data_source,
            "find_user",
            AsyncMock(side_effect=DataSourceUnavailableError("connection refused")),
        )
        r = client.get(f"{PREFIX}/cap")
        assert r.status_code == 503
        assert r.json()["error"]["code"] == "DATA_SOURCE_UNAVAILABLE"


class TestStatsUpdate:
    def test_recompute(self, client):
        r = client.post(f"{PREFIX}/cap/stats")
        assert r.status_code == 202
        data = r.json()
        assert data["id"] == "cap"
        assert data["stats"]["captain_record"] == {"win": 1, "loss": 0, "tie": 1}
        assert data["stats"]["captain_score"]["center"] == pytest.approx(0.7)

    def test_page_reflects_recompute(self, client):
        client.get(f"{PREFIX}/cap")
        client.post(f"{PREFIX}/cap/stats")

        page = client.get(f"{PREFIX}/cap").json()
        assert page["user"]["stats"]["captain_record"]["win"] == 1

    def test_recompute_unknown_player(self, client):
        r = client.post(f"{PREFIX}/nobody/stats")
        assert r.status_code == 404

    def test_invalidate_page(self, client):
        client.get(f"{PREFIX}/cap")
        r = client.delete(f"{PREFIX}/cap/page")
        assert r.status_code == 204
        assert r.content == b""
