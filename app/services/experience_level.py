from collections.abc import Sequence
from typing import Annotated, NamedTuple

from fastapi import Depends
from loguru import logger
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.models.experience_level import ExperienceLevel

# (level, min_experience, max_experience)
EXPERIENCE_LEVELS: tuple[tuple[int, int, int], ...] = (
    (0, 0, 50),
    (1, 51, 100),
    (2, 101, 300),
    (3, 301, 600),
    (4, 601, 1000),
    (5, 1001, 1500),
    (6, 1501, 2100),
    (7, 2101, 2800),
    (8, 2801, 3600),
    (9, 3601, 4500),
    (10, 4501, 5500),
)

INSERT_BUILDERS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class LevelProgress(NamedTuple):
    level: int
    experience_to_next_level: int


def resolve_level(levels: Sequence[ExperienceLevel], experience: int) -> LevelProgress:
    """Find the level whose experience range contains ``experience``.

    ``levels`` must be ordered by level. Experience past the top range stays at
    the top level with nothing left to earn. An empty table, or experience
    below the first range, resolves to level 0.
    """
    for row in levels:
        if row.min_experience <= experience <= row.max_experience:
            return LevelProgress(row.level, row.max_experience - experience)

    if levels and experience > levels[-1].max_experience:
        return LevelProgress(levels[-1].level, 0)
    return LevelProgress(0, 0)


class ExperienceLevelService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def get_levels(self) -> Sequence[ExperienceLevel]:
        result = await self.db.exec(select(ExperienceLevel).order_by(col(ExperienceLevel.level)))
        return result.all()

    async def get_progress(self, experience: int) -> LevelProgress:
        return resolve_level(await self.get_levels(), experience)

    async def seed(self) -> None:
        """Insert the fixed level table, leaving rows that already exist untouched."""
        conn = await self.db.connection()
        insert = INSERT_BUILDERS[conn.dialect.name]
        statement = (
            insert(ExperienceLevel)
            .values(
                [
                    {"level": level, "min_experience": low, "max_experience": high}
                    for level, low, high in EXPERIENCE_LEVELS
                ]
            )
            .on_conflict_do_nothing(index_elements=["level"])
        )
        await self.db.exec(statement)
        await self.db.commit()
        logger.info(f"Experience levels seeded ({len(EXPERIENCE_LEVELS)} rows ensured)")
