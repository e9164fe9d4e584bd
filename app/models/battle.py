import uuid

import sqlalchemy
import sqlmodel

from app.core.enums import BattleStatus

from ._base import BaseModel


def generate_battle_id() -> str:
    return str(uuid.uuid4())


class Battle(BaseModel, table=True):
    __tablename__: str = "battles"

    id: str = sqlmodel.Field(
        default_factory=generate_battle_id, primary_key=True, sa_type=sqlmodel.String(36)
    )
    name: str = sqlmodel.Field(
        default="", sa_type=sqlmodel.String(255), sa_column_kwargs={"server_default": ""}
    )
    creator_id: int = sqlmodel.Field(
        foreign_key="game_users.user_id", index=True, sa_type=sqlmodel.BigInteger
    )
    opponent_id: int | None = sqlmodel.Field(
        foreign_key="game_users.user_id",
        index=True,
        nullable=True,
        default=None,
        sa_type=sqlmodel.BigInteger,
    )
    # Stored as plain text ("waiting", ...) rather than a database enum type
    status: BattleStatus = sqlmodel.Field(
        default=BattleStatus.WAITING,
        sa_type=sqlalchemy.Enum(
            BattleStatus,
            native_enum=False,
            length=50,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        sa_column_kwargs={"server_default": BattleStatus.WAITING.value},
    )
