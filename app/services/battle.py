import uuid
from typing import Annotated, Any

from fastapi import Depends
from loguru import logger
from sqlalchemy import ColumnElement, delete, update
from sqlalchemy.orm import aliased
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.sql.expression import Select

from app.core.db import get_db
from app.core.enums import BattleStatus
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.battle import Battle
from app.models.player import Player
from app.schemas.battle import BattleRead
from app.services.player import PlayerService
from app.utils.misc import get_epoch_millis


def parse_battle_id(raw: str) -> str:
    """Normalise a battle ID from a URL, rejecting anything that isn't a UUID."""
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        msg = f"Invalid battle id: {raw!r}"
        raise ValidationError(msg) from None


class BattleService:
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        player_service: Annotated[PlayerService, Depends()],
    ) -> None:
        self.db = db
        self.player_service = player_service

    def _battle_query(self) -> Select[tuple[Battle, str | None, str | None]]:
        creator = aliased(Player)
        opponent = aliased(Player)
        return (
            select(Battle, creator.photo_url, opponent.photo_url)
            .outerjoin(creator, col(Battle.creator_id) == creator.user_id)
            .outerjoin(opponent, col(Battle.opponent_id) == opponent.user_id)
            .execution_options(populate_existing=True)
        )

    async def get_battles(self, status: BattleStatus | None = None) -> list[BattleRead]:
        """List battles with both players' photos, newest first.

        Without a status every battle is returned.
        """
        query = self._battle_query().order_by(col(Battle.created_at).desc(), col(Battle.id))
        if status is not None:
            query = query.where(col(Battle.status) == status)

        result = await self.db.exec(query)
        return [
            BattleRead(
                **battle.model_dump(), creator_photo=creator_photo, opponent_photo=opponent_photo
            )
            for battle, creator_photo, opponent_photo in result.all()
        ]

    async def get_battle(self, battle_id: str) -> BattleRead | None:
        result = await self.db.exec(self._battle_query().where(col(Battle.id) == battle_id))
        row = result.first()
        if row is None:
            return None

        battle, creator_photo, opponent_photo = row
        return BattleRead(
            **battle.model_dump(), creator_photo=creator_photo, opponent_photo=opponent_photo
        )

    async def _require_player(self, user_id: int) -> Player:
        player = await self.player_service.get_player(user_id)
        if not player:
            msg = f"Player {user_id} not found"
            raise NotFoundError(msg)
        return player

    async def create_battle(self, creator_id: int, name: str | None = None) -> Battle:
        await self._require_player(creator_id)

        battle = Battle(
            name=name or f"Battle-{get_epoch_millis()}",
            creator_id=creator_id,
            status=BattleStatus.WAITING,
        )
        self.db.add(battle)
        await self.db.commit()
        await self.db.refresh(battle)
        logger.info(f"Player {creator_id} created battle {battle.id}")
        return battle

    async def _transition(
        self,
        battle_id: str,
        source: BattleStatus,
        target: BattleStatus,
        *conditions: ColumnElement[bool],
        **values: Any,
    ) -> Battle | None:
        """Move a battle from ``source`` to ``target`` in one conditional write.

        The status check happens inside the UPDATE, so a concurrent writer that
        got there first makes this return None instead of overwriting it.
        """
        if not source.can_transition_to(target):
            msg = f"Battle cannot go from {source} to {target}"
            raise ConflictError(msg)

        statement = (
            update(Battle)
            .where(col(Battle.id) == battle_id, col(Battle.status) == source, *conditions)
            .values(status=target, **values)
            .returning(Battle)
        )
        result = await self.db.exec(statement)
        battle = result.scalar_one_or_none()
        await self.db.commit()
        if battle is not None:
            await self.db.refresh(battle)
        return battle

    async def join_battle(self, battle_id: str, user_id: int) -> Battle:
        await self._require_player(user_id)

        result = await self.db.exec(
            select(Battle).where(col(Battle.id) == battle_id, col(Battle.opponent_id).is_(None))
        )
        open_battle = result.first()
        if not open_battle:
            msg = "Battle not found or already has an opponent"
            raise NotFoundError(msg)

        if open_battle.creator_id == user_id:
            msg = "You cannot join your own battle"
            raise ConflictError(msg)

        battle = await self._transition(
            battle_id,
            BattleStatus.WAITING,
            BattleStatus.IN_PROGRESS,
            col(Battle.opponent_id).is_(None),
            col(Battle.creator_id) != user_id,
            opponent_id=user_id,
        )
        if battle is None:
            # Someone else took the slot after our read
            msg = "Battle not found or already has an opponent"
            raise NotFoundError(msg)

        logger.info(f"Player {user_id} joined battle {battle_id}")
        return battle

    async def finish_battle(self, battle_id: str) -> Battle:
        """Mark an in-progress battle as finished.

        Called by whatever resolves the fight; no route exposes it.
        """
        battle = await self._transition(battle_id, BattleStatus.IN_PROGRESS, BattleStatus.FINISHED)
        if battle is None:
            msg = "Battle not found or not in progress"
            raise NotFoundError(msg)

        logger.info(f"Battle {battle_id} finished")
        return battle

    async def cancel_battle(self, battle_id: str) -> None:
        """Delete a battle nobody has joined yet."""
        cancellable = [status for status in BattleStatus if status.is_cancellable]
        result = await self.db.exec(
            delete(Battle)
            .where(col(Battle.id) == battle_id, col(Battle.status).in_(cancellable))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount == 0:
            msg = "Battle not found or can no longer be cancelled"
            raise NotFoundError(msg)

        logger.info(f"Battle {battle_id} cancelled")
