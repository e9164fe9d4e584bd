from datetime import datetime
from typing import Any

import sqlalchemy
import sqlmodel

from app.utils.misc import get_utc_now


def stat_field(default: int) -> Any:
    """Integer column whose default also lives in the database.

    The server default lets the column be added to a populated table.
    """
    return sqlmodel.Field(
        default=default, sa_column_kwargs={"server_default": sqlalchemy.text(str(default))}
    )


class BaseModel(sqlmodel.SQLModel):
    created_at: datetime = sqlmodel.Field(
        default_factory=get_utc_now,
        sa_type=sqlmodel.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sqlalchemy.func.now()},
    )
