from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.character import Character
from app.models.experience_level import ExperienceLevel


class PlayerEnter(BaseModel):
    """Body sent by the WebApp on every launch."""

    user_id: int
    photo_url: str | None = Field(default=None, max_length=255)


class PlayerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    photo_url: str | None = None


class CharacterView(BaseModel):
    """Character with its level progress derived from experience."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: int
    strength: int
    agility: int
    intuition: int
    endurance: int
    intelligence: int
    wisdom: int
    upgrade_points: int
    level: int
    experience: int
    health: int
    max_health: int
    damage: int
    mana: int
    max_mana: int
    created_at: datetime | None = None

    current_level: int = Field(alias="currentLevel")
    experience_to_next_level: int = Field(alias="experienceToNextLevel")


class PlayerSession(BaseModel):
    """Response to POST /webapp."""

    message: str
    user: PlayerRead
    character: Character


class PlayerView(BaseModel):
    """Response to GET /webapp/{user_id}."""

    user: PlayerRead
    character: CharacterView
    experience_levels: list[ExperienceLevel]
