from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.schemas.player import PlayerEnter, PlayerRead, PlayerSession, PlayerView
from app.services.player import PlayerService

router = APIRouter(prefix="/webapp", tags=["webapp"])


@router.post("")
async def enter_webapp(
    payload: PlayerEnter, response: Response, service: Annotated[PlayerService, Depends()]
) -> PlayerSession:
    """Register the player on first launch, otherwise return their character."""
    player, character, created = await service.ensure_player_and_character(
        payload.user_id, payload.photo_url
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return PlayerSession(
        message="User created" if created else "User found",
        user=PlayerRead.model_validate(player),
        character=character,
    )


@router.get("/{user_id}")
async def get_player_view(
    user_id: int, service: Annotated[PlayerService, Depends()]
) -> PlayerView:
    return await service.get_player_view(user_id)
