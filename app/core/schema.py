"""Startup schema reconciliation.

Brings the live database to the shape of the models without touching data:
missing tables are created, missing columns from each table's evolving-column
allowlist are added with their defaults. Nothing is ever dropped or altered.
"""

from dataclasses import dataclass
from typing import Literal

import sqlalchemy
from loguru import logger
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateColumn

from app.core.config import settings
from app.models.battle import Battle
from app.models.character import Character
from app.models.experience_level import ExperienceLevel
from app.models.player import Player

# Creation order follows the foreign keys
MANAGED_TABLES: tuple[sqlalchemy.Table, ...] = (
    Player.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    Character.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    ExperienceLevel.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    Battle.__table__,  # pyright: ignore[reportAttributeAccessIssue]
)

# Columns added after the first revision of each table. Every entry needs a
# server default or must be nullable.
EVOLVING_COLUMNS: dict[str, tuple[str, ...]] = {
    "game_users": ("photo_url",),
    "characters": (
        "strength",
        "agility",
        "intuition",
        "endurance",
        "intelligence",
        "wisdom",
        "upgrade_points",
        "level",
        "experience",
        "health",
        "max_health",
        "damage",
        "mana",
        "max_mana",
    ),
    "battles": ("name", "status"),
}


@dataclass(frozen=True, slots=True)
class SchemaChange:
    kind: Literal["table_created", "column_added"]
    table: str
    column: str | None = None


class SchemaReconciler:
    def __init__(self, engine: AsyncEngine, *, schema: str | None = None) -> None:
        self.engine = engine
        self.schema = schema or settings.db_schema

    async def reconcile(self) -> list[SchemaChange]:
        """Reconcile every managed table in a single transaction.

        Any failing statement rolls the whole run back and propagates.
        """
        async with self.engine.begin() as conn:
            return await conn.run_sync(self._reconcile)

    def _namespace(self, conn: Connection) -> str | None:
        # Only PostgreSQL has a catalog namespace to scope the lookup to
        return self.schema if conn.dialect.name == "postgresql" else None

    def _reconcile(self, conn: Connection) -> list[SchemaChange]:
        inspector = sqlalchemy.inspect(conn)
        namespace = self._namespace(conn)
        existing_tables = set(inspector.get_table_names(schema=namespace))
        changes: list[SchemaChange] = []

        for table in MANAGED_TABLES:
            if table.name not in existing_tables:
                logger.info(f"Table {table.name!r} does not exist, creating it")
                table.create(conn)
                changes.append(SchemaChange(kind="table_created", table=table.name))
                logger.info(f"Table {table.name!r} created")
                continue

            logger.info(f"Table {table.name!r} already exists")
            existing_columns = {
                column["name"] for column in inspector.get_columns(table.name, schema=namespace)
            }
            for column_name in EVOLVING_COLUMNS.get(table.name, ()):
                if column_name in existing_columns:
                    logger.debug(f"Column {column_name!r} already exists in {table.name!r}")
                    continue

                self._add_column(conn, table, column_name)
                changes.append(
                    SchemaChange(kind="column_added", table=table.name, column=column_name)
                )

        return changes

    def _add_column(self, conn: Connection, table: sqlalchemy.Table, column_name: str) -> None:
        preparer = conn.dialect.identifier_preparer
        definition = CreateColumn(table.c[column_name]).compile(dialect=conn.dialect)
        logger.info(f"Adding column {column_name!r} to {table.name!r}: {definition}")
        conn.execute(
            sqlalchemy.text(f"ALTER TABLE {preparer.format_table(table)} ADD COLUMN {definition}")
        )
        logger.info(f"Column {column_name!r} added to {table.name!r}")
