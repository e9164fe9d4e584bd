import sqlmodel

from ._base import BaseModel, stat_field


class Character(BaseModel, table=True):
    __tablename__: str = "characters"

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    user_id: int = sqlmodel.Field(
        foreign_key="game_users.user_id", unique=True, sa_type=sqlmodel.BigInteger
    )

    strength: int = stat_field(15)
    agility: int = stat_field(10)
    intuition: int = stat_field(10)
    endurance: int = stat_field(10)
    intelligence: int = stat_field(10)
    wisdom: int = stat_field(10)
    upgrade_points: int = stat_field(5)

    level: int = stat_field(0)
    """Derived from experience, see app.services.experience_level.resolve_level"""
    experience: int = stat_field(0)

    health: int = stat_field(100)
    max_health: int = stat_field(150)
    damage: int = stat_field(10)
    mana: int = stat_field(50)
    max_mana: int = stat_field(50)
