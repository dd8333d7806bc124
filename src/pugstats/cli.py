#!/usr/bin/env python3
"""
Command-line interface for pugstats maintenance.

Usage:
    pugstats init-db                      # Create PostgreSQL tables
    pugstats recompute PLAYER_ID [...]    # Recompute stats for players
    pugstats recompute --all              # Recompute stats for every player
    pugstats refresh-lists                # Rebuild cached player lists now
    pugstats serve                        # Run the HTTP API
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .core.config import get_settings
from .core.exceptions import PugStatsError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("pugstats.cli")


async def _init_db() -> int:
    from .pg_async import AsyncPostgresDB
    from .schema import init_schema

    settings = get_settings()
    db = AsyncPostgresDB.from_settings(settings)
    try:
        await init_schema(db)
    finally:
        await db.close()
    return 0


async def _recompute(player_ids: list[str], all_players: bool) -> int:
    from .services.players import create_player_service

    service = await create_player_service(get_settings())
    try:
        if all_players:
            result = await service.coordinator.update_all_player_stats()
            failed = result["failed"]
        else:
            failed = 0
            for player_id in player_ids:
                try:
                    stats = await service.update_player_stats(player_id)
                    logger.info(
                        f"{player_id}: captain {stats.captain_record.games} games, "
                        f"player {stats.player_record.games} games"
                    )
                except PugStatsError as e:
                    failed += 1
                    logger.error(f"{player_id}: {e.message}")

        # Don't wait out the debounce window in a one-shot process
        await service.refresh_player_lists()
    finally:
        await service.close()

    return 1 if failed else 0


async def _refresh_lists() -> int:
    from .services.players import create_player_service

    service = await create_player_service(get_settings())
    try:
        lists = await service.refresh_player_lists()
        for key, players in lists.items():
            logger.info(f"{key}: {len(players)} players")
    finally:
        await service.close()
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create database tables and indexes."""
    if not get_settings().database_url:
        logger.error("DATABASE_URL is not configured")
        return 1
    return asyncio.run(_init_db())


def cmd_recompute(args: argparse.Namespace) -> int:
    """Recompute stats for the given players (or all)."""
    if not args.all and not args.player_ids:
        logger.error("Give at least one player ID or --all")
        return 1
    return asyncio.run(_recompute(args.player_ids, args.all))


def cmd_refresh_lists(args: argparse.Namespace) -> int:
    """Rebuild the cached player lists."""
    return asyncio.run(_refresh_lists())


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pugstats.api.main:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="pugstats maintenance CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("init-db", help="Create PostgreSQL tables and indexes")

    recompute_parser = subparsers.add_parser("recompute", help="Recompute player stats")
    recompute_parser.add_argument("player_ids", nargs="*", help="Player IDs")
    recompute_parser.add_argument("--all", action="store_true", help="Recompute every player")

    subparsers.add_parser("refresh-lists", help="Rebuild cached player lists")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "init-db": cmd_init_db,
        "recompute": cmd_recompute,
        "refresh-lists": cmd_refresh_lists,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
