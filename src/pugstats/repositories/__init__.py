"""
Data source abstraction layer.

Provides the async query surface the stats engine reads from, with a
PostgreSQL implementation for production and an in-memory one for tests
and local development.

Usage:
    from pugstats.repositories import create_data_source

    source = await create_data_source(settings)
    player = await source.find_user("abc123")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import DataSource
from .memory import InMemoryDataSource

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "DataSource",
    "InMemoryDataSource",
    "create_data_source",
]


async def create_data_source(settings: "Settings") -> DataSource:
    """
    Build the data source for the given settings.

    Uses PostgreSQL when DATABASE_URL is configured, otherwise an in-memory
    store (optionally seeded from FIXTURE_PATH).

    Args:
        settings: Application settings

    Returns:
        DataSource implementation
    """
    if settings.database_url:
        from ..pg_async import AsyncPostgresDB
        from .postgres import PostgresDataSource

        db = AsyncPostgresDB.from_settings(settings)
        await db.initialize()
        logger.info("Using PostgreSQL data source")
        return PostgresDataSource(db)

    if settings.fixture_path:
        logger.info(f"No DATABASE_URL configured, using in-memory data source from {settings.fixture_path}")
        return InMemoryDataSource.from_fixture(settings.fixture_path)

    logger.info("No DATABASE_URL configured, using empty in-memory data source")
    return InMemoryDataSource()
