"""
Players router - serves cached player lists and pages.

Endpoints:
- GET    /                     - Ranked player list (active only by default)
- GET    /{identifier}         - Player page by ID, Steam ID or alias
- POST   /{player_id}/stats    - Recompute a player's stats
- DELETE /{player_id}/page     - Drop a cached player page
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, Response
from starlette.status import HTTP_202_ACCEPTED, HTTP_204_NO_CONTENT

from ..dependencies import ServiceDependency

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_players(
    service: ServiceDependency,
    include_inactive: Annotated[
        bool, Query(description="Include unauthorized players and players without games")
    ] = False,
) -> list[dict[str, Any]]:
    """Ranked player listings served from the list cache."""
    return await service.get_player_list(include_inactive)


@router.get("/{identifier}")
async def get_player_page(identifier: str, service: ServiceDependency) -> dict[str, Any]:
    """Player page; 404 if the identifier does not resolve."""
    return await service.get_player_page(identifier)


@router.post("/{player_id}/stats", status_code=HTTP_202_ACCEPTED)
async def update_player_stats(player_id: str, service: ServiceDependency) -> dict[str, Any]:
    """Recompute and persist a player's stats, then refresh caches."""
    stats = await service.update_player_stats(player_id)
    return {"id": player_id, "stats": stats.model_dump(mode="json")}


@router.delete("/{player_id}/page", status_code=HTTP_204_NO_CONTENT)
async def invalidate_player_page(player_id: str, service: ServiceDependency) -> Response:
    await service.invalidate_player_page(player_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
