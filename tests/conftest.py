"""
Shared fixtures.

Tests run against a throwaway SQLite file unless TEST_DATABASE_URL points at
another database (e.g. a disposable PostgreSQL). The URL must be in place
before the app modules are imported, since the engine is built at import.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

_TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="webapp-arena-")) / "test.db"
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from app.core.db import engine  # noqa: E402
from app.main import app, app_lifespan, prepare_database  # noqa: E402
from app.services.battle import BattleService  # noqa: E402
from app.services.experience_level import ExperienceLevelService  # noqa: E402
from app.services.player import PlayerService  # noqa: E402


def make_player_service(session: AsyncSession) -> PlayerService:
    return PlayerService(db=session, level_service=ExperienceLevelService(db=session))


def make_battle_service(session: AsyncSession) -> BattleService:
    return BattleService(db=session, player_service=make_player_service(session))


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Engine on an empty database; every managed table is dropped first."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session on a reconciled and seeded database."""
    await prepare_database(db_engine)
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def player_service(db_session: AsyncSession) -> PlayerService:
    return make_player_service(db_session)


@pytest.fixture
def battle_service(db_session: AsyncSession) -> BattleService:
    return make_battle_service(db_session)


@pytest_asyncio.fixture
async def players(player_service: PlayerService) -> list[int]:
    """Three registered players; the first one usually creates battles."""
    user_ids = [42, 43, 44]
    for user_id in user_ids:
        await player_service.ensure_player_and_character(user_id, f"https://t.me/i/{user_id}.jpg")
    return user_ids


@pytest_asyncio.fixture
async def client(db_engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client against the app, with startup and shutdown run around it."""
    async with (
        app_lifespan(app),
        AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client,
    ):
        yield http_client
