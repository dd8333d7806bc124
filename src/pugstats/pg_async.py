"""
Async PostgreSQL access for the player store.

A thin layer over a psycopg 3 connection pool: rows come back as dicts,
every call is a suspension point on the event loop, and connectivity
problems (refused connections, pool exhaustion) are raised as
DataSourceUnavailableError so callers never see driver exceptions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from .core.exceptions import DataSourceUnavailableError

if TYPE_CHECKING:
    from .core.config import Settings

logger = logging.getLogger(__name__)

Params = tuple[Any, ...]


class AsyncPostgresDB:
    """Pooled async connection manager used by PostgresDataSource and the schema setup."""

    def __init__(self, connection_string: str, min_pool_size: int = 2, max_pool_size: int = 10):
        """
        Args:
            connection_string: PostgreSQL connection URL
            min_pool_size: Connections kept open
            max_pool_size: Upper bound on open connections
        """
        if not connection_string:
            raise ValueError("A PostgreSQL connection string is required (set DATABASE_URL)")

        self.connection_string = connection_string
        self._min_pool_size = min_pool_size
        self._max_pool_size = max(max_pool_size, min_pool_size)
        self._pool: Optional[AsyncConnectionPool] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AsyncPostgresDB":
        return cls(
            settings.database_url,
            min_pool_size=settings.database_pool_min_size,
            max_pool_size=settings.database_pool_size,
        )

    async def initialize(self) -> None:
        """Open the pool. Safe to call more than once."""
        if self._pool is not None:
            return

        pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self._min_pool_size,
            max_size=self._max_pool_size,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        try:
            await pool.open(wait=True)
        except (psycopg.OperationalError, PoolTimeout) as e:
            raise DataSourceUnavailableError(f"Could not open database pool: {e}") from e

        self._pool = pool
        logger.info(f"Database pool open (min={self._min_pool_size}, max={self._max_pool_size})")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[psycopg.AsyncCursor]:
        """
        Cursor inside a transaction, committed on clean exit.

        Usage:
            async with db.transaction() as cur:
                await cur.execute(...)
        """
        await self.initialize()
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        yield cur
        except (psycopg.OperationalError, PoolTimeout) as e:
            logger.error(f"Database unavailable: {e}")
            raise DataSourceUnavailableError(str(e)) from e

    async def execute(self, query: str, params: Params = ()) -> int:
        """Run one statement; returns the affected row count."""
        async with self.transaction() as cur:
            await cur.execute(query, params)
            return cur.rowcount

    async def execute_script(self, statements: Iterable[str]) -> int:
        """Run several statements in one transaction; returns how many ran."""
        count = 0
        async with self.transaction() as cur:
            for statement in statements:
                await cur.execute(statement)
                count += 1
        return count

    async def fetchone(self, query: str, params: Params = ()) -> Optional[dict[str, Any]]:
        async with self.transaction() as cur:
            await cur.execute(query, params)
            return await cur.fetchone()

    async def fetchall(self, query: str, params: Params = ()) -> list[dict[str, Any]]:
        async with self.transaction() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()

    async def fetchval(self, query: str, params: Params = ()) -> Any:
        """First column of the first row, or None."""
        row = await self.fetchone(query, params)
        if not row:
            return None
        return next(iter(row.values()))
