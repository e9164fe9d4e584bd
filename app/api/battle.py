from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.core.enums import BattleStatus
from app.core.exceptions import NotFoundError
from app.schemas.battle import BattleCreate, BattleDetail, BattleEnvelope, BattleJoin, BattleList
from app.schemas.common import APIResponse
from app.services.battle import BattleService, parse_battle_id

router = APIRouter(prefix="/battles", tags=["battles"])


@router.get("")
async def get_battles(
    service: Annotated[BattleService, Depends()],
    status: Annotated[BattleStatus | None, Query()] = None,
) -> BattleList:
    return BattleList(battles=await service.get_battles(status))


@router.get("/{battle_id}")
async def get_battle(battle_id: str, service: Annotated[BattleService, Depends()]) -> BattleDetail:
    battle = await service.get_battle(parse_battle_id(battle_id))
    if not battle:
        msg = "Battle not found"
        raise NotFoundError(msg)
    return BattleDetail(battle=battle)


@router.post("")
async def create_battle(
    payload: BattleCreate, service: Annotated[BattleService, Depends()]
) -> BattleEnvelope:
    battle = await service.create_battle(payload.user_id, payload.name)
    return BattleEnvelope(battle=battle)


@router.post("/{battle_id}/join")
async def join_battle(
    battle_id: str, payload: BattleJoin, service: Annotated[BattleService, Depends()]
) -> BattleEnvelope:
    battle = await service.join_battle(parse_battle_id(battle_id), payload.user_id)
    return BattleEnvelope(battle=battle)


@router.delete("/{battle_id}/delete")
async def cancel_battle(
    battle_id: str, service: Annotated[BattleService, Depends()]
) -> APIResponse[None]:
    await service.cancel_battle(parse_battle_id(battle_id))
    return APIResponse(message="Battle cancelled successfully")
