from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from app.core.enums import BattleStatus
from app.models.battle import Battle


class BattleCreate(BaseModel):
    user_id: int
    name: str | None = Field(default=None, min_length=1, max_length=255)


class BattleJoin(BaseModel):
    user_id: int


class BattleRead(BaseModel):
    """Battle row joined with both players' display attributes."""

    # Tables from older revisions still carry integer ids
    id: Annotated[str, BeforeValidator(str)]
    name: str
    creator_id: int
    opponent_id: int | None = None
    status: BattleStatus
    created_at: datetime | None = None

    creator_photo: str | None = None
    opponent_photo: str | None = None


class BattleEnvelope(BaseModel):
    battle: Battle


class BattleDetail(BaseModel):
    battle: BattleRead


class BattleList(BaseModel):
    battles: list[BattleRead]
