"""
Pytest configuration for pugstats tests.
"""

import os

import pytest

from pugstats.cache.store import InMemoryBackend, ReadThroughCache
from pugstats.core.config import Settings
from pugstats.repositories.memory import InMemoryDataSource
from pugstats.services.players import PlayerService


def pytest_configure(config):
    """Load DATABASE_URL from a local .env file if it is not already set."""
    env_file = os.path.join(os.path.dirname(__file__), "..", ".env")
    if os.path.exists(env_file):
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = value


def make_settings(**overrides) -> Settings:
    """Settings with short debounce windows and a small draft."""
    values = {
        "database_url": None,
        "redis_url": None,
        "fixture_path": None,
        "list_debounce_wait": 0.05,
        "list_debounce_max_wait": 0.2,
        "roles": {"scout": "Scout", "soldier": "Soldier", "medic": "Medic"},
        "draft_order": ["factionSelect", "factionSelect"] + ["playerPick"] * 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def source() -> InMemoryDataSource:
    return InMemoryDataSource()


@pytest.fixture
def cache() -> ReadThroughCache:
    return ReadThroughCache(InMemoryBackend())


@pytest.fixture
async def service(source, cache, settings):
    player_service = PlayerService(source, cache, settings)
    yield player_service
    await player_service.close()
