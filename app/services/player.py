from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.core.exceptions import NotFoundError
from app.models.character import Character
from app.models.player import Player
from app.schemas.player import CharacterView, PlayerRead, PlayerView
from app.services.experience_level import ExperienceLevelService, resolve_level


class PlayerService:
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        level_service: Annotated[ExperienceLevelService, Depends()],
    ) -> None:
        self.db = db
        self.level_service = level_service

    async def get_player(self, user_id: int) -> Player | None:
        result = await self.db.exec(select(Player).where(Player.user_id == user_id))
        return result.first()

    async def get_character(self, user_id: int) -> Character | None:
        result = await self.db.exec(select(Character).where(Character.user_id == user_id))
        return result.first()

    async def ensure_player_and_character(
        self, user_id: int, photo_url: str | None
    ) -> tuple[Player, Character, bool]:
        """Return the player's rows, creating both on first contact.

        Returns:
            The player, the character and whether they were just created.
        """
        player = await self.get_player(user_id)
        if player:
            character = await self._refresh_character(user_id)
            return player, character, False

        player = Player(user_id=user_id, photo_url=photo_url)
        character = Character(user_id=user_id)
        self.db.add(player)
        try:
            # Player first, the character references it
            await self.db.flush()
            self.db.add(character)
            await self.db.commit()
        except IntegrityError:
            # Another request created this player between our read and insert
            await self.db.rollback()
            player = await self.get_player(user_id)
            if not player:
                raise
            character = await self._refresh_character(user_id)
            return player, character, False

        await self.db.refresh(player)
        await self.db.refresh(character)
        logger.info(f"Created player {user_id} with a new character")
        return player, character, True

    async def _refresh_character(self, user_id: int) -> Character:
        """Load the character, recomputing its stored level from experience."""
        character = await self.get_character(user_id)
        if character is None:
            logger.warning(f"Player {user_id} has no character, creating one")
            character = Character(user_id=user_id)

        progress = await self.level_service.get_progress(character.experience)
        character.level = progress.level
        self.db.add(character)
        await self.db.commit()
        await self.db.refresh(character)
        return character

    async def get_player_view(self, user_id: int) -> PlayerView:
        player = await self.get_player(user_id)
        if not player:
            msg = "User not found"
            raise NotFoundError(msg)

        character = await self.get_character(user_id)
        if not character:
            msg = "Character not found"
            raise NotFoundError(msg)

        levels = await self.level_service.get_levels()
        progress = resolve_level(levels, character.experience)

        character_data = character.model_dump()
        character_data["level"] = progress.level
        return PlayerView(
            user=PlayerRead.model_validate(player),
            character=CharacterView(
                **character_data,
                current_level=progress.level,
                experience_to_next_level=progress.experience_to_next_level,
            ),
            experience_levels=list(levels),
        )
