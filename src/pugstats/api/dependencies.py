"""
Dependency injection for API endpoints.

The PlayerService is built once in the application lifespan and stored on
app.state; routes receive it through ServiceDependency.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..services.players import PlayerService


def get_player_service(request: Request) -> PlayerService:
    """
    Dependency that provides the application's PlayerService.

    Returns:
        PlayerService created at startup
    """
    return request.app.state.player_service


# Type alias for dependency injection
ServiceDependency = Annotated[PlayerService, Depends(get_player_service)]
