import sqlmodel

from ._base import BaseModel


class Player(BaseModel, table=True):
    __tablename__: str = "game_users"

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    user_id: int = sqlmodel.Field(unique=True, sa_type=sqlmodel.BigInteger)
    """Telegram user ID"""
    photo_url: str | None = sqlmodel.Field(
        default=None, nullable=True, sa_type=sqlmodel.String(255)
    )
