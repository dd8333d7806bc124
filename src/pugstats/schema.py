"""
Database schema for the PostgreSQL data source.

Games keep their teams and draft as JSONB documents; the data source
filters them with jsonb_path_exists, backed by GIN indexes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pg_async import AsyncPostgresDB

logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        alias TEXT UNIQUE,
        steam_id TEXT UNIQUE,
        authorized BOOLEAN NOT NULL DEFAULT FALSE,
        groups JSONB NOT NULL DEFAULT '[]'::jsonb,
        stats JSONB NOT NULL DEFAULT '{}'::jsonb,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS games (
        id TEXT PRIMARY KEY,
        date TIMESTAMPTZ,
        status TEXT NOT NULL,
        teams JSONB NOT NULL DEFAULT '[]'::jsonb,
        score JSONB,
        duration DOUBLE PRECISION,
        draft JSONB NOT NULL DEFAULT '{}'::jsonb,
        server JSONB,
        links JSONB NOT NULL DEFAULT '[]'::jsonb
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_games_teams ON games USING GIN (teams jsonb_path_ops)",
    "CREATE INDEX IF NOT EXISTS idx_games_draft ON games USING GIN (draft jsonb_path_ops)",
    "CREATE INDEX IF NOT EXISTS idx_games_status_date ON games (status, date DESC)",
    """
    CREATE TABLE IF NOT EXISTS ratings (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES players (id),
        game_id TEXT REFERENCES games (id),
        date TIMESTAMPTZ NOT NULL,
        before JSONB NOT NULL DEFAULT '{}'::jsonb,
        after JSONB NOT NULL DEFAULT '{}'::jsonb
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ratings_user_date ON ratings (user_id, date DESC)",
    """
    CREATE TABLE IF NOT EXISTS restrictions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES players (id),
        active BOOLEAN NOT NULL DEFAULT TRUE,
        expires TIMESTAMPTZ,
        aspects JSONB NOT NULL DEFAULT '[]'::jsonb,
        reason TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_restrictions_user ON restrictions (user_id)",
]


async def init_schema(db: "AsyncPostgresDB") -> int:
    """
    Create tables and indexes if they do not exist.

    Args:
        db: Async database connection

    Returns:
        Number of statements executed
    """
    count = await db.execute_script(SCHEMA_STATEMENTS)
    logger.info(f"Schema ready ({count} statements)")
    return count
