"""
HTTP tests for the /webapp and /battles endpoints.

Requests go through the ASGI app with startup (schema reconciliation and
level seeding) run beforehand, so status codes and bodies are the wire ones.
"""

import asyncio
import uuid

import pytest
import sqlalchemy
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import settings
from app.main import app, app_lifespan

pytestmark = pytest.mark.integration


async def _register(client: AsyncClient, user_id: int) -> None:
    response = await client.post(
        "/webapp", json={"user_id": user_id, "photo_url": f"https://t.me/i/{user_id}.jpg"}
    )
    assert response.status_code in {200, 201}


async def _create_battle(client: AsyncClient, user_id: int) -> dict:
    response = await client.post("/battles", json={"user_id": user_id})
    assert response.status_code == 200
    return response.json()["battle"]


class TestHealth:
    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.text == "Telegram WebApp Server is running!"

    async def test_ready_after_startup(self, client: AsyncClient):
        response = await client.get("/ready")

        assert response.status_code == 200

    async def test_not_ready_when_startup_fails(self, db_engine, monkeypatch: pytest.MonkeyPatch):
        async def broken_prepare(_engine):  # noqa: ANN202
            msg = "connection refused"
            raise SQLAlchemyError(msg)

        monkeypatch.setattr("app.main.prepare_database", broken_prepare)

        async with app_lifespan(app):
            assert app.state.schema_ready is False

    async def test_fail_fast_aborts_startup(self, db_engine, monkeypatch: pytest.MonkeyPatch):
        async def broken_prepare(_engine):  # noqa: ANN202
            msg = "connection refused"
            raise SQLAlchemyError(msg)

        monkeypatch.setattr("app.main.prepare_database", broken_prepare)
        monkeypatch.setattr(settings, "schema_fail_fast", True)

        with pytest.raises(SQLAlchemyError):
            async with app_lifespan(app):
                pass

    async def test_not_ready_when_database_unreachable(self, monkeypatch: pytest.MonkeyPatch):
        unreachable = create_async_engine("postgresql+asyncpg://u:p@127.0.0.1:1/game")
        monkeypatch.setattr("app.main.engine", unreachable)

        async with app_lifespan(app):
            assert app.state.schema_ready is False


class TestWebapp:
    async def test_missing_user_id(self, client: AsyncClient):
        response = await client.post("/webapp", json={"photo_url": "x"})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["data"][0]["loc"] == ["body", "user_id"]

    async def test_new_then_existing_player(self, client: AsyncClient):
        created = await client.post("/webapp", json={"user_id": 42, "photo_url": "p.jpg"})
        found = await client.post("/webapp", json={"user_id": 42, "photo_url": "p.jpg"})

        assert created.status_code == 201
        assert found.status_code == 200
        assert created.json()["user"] == {"user_id": 42, "photo_url": "p.jpg"}
        assert found.json()["character"]["id"] == created.json()["character"]["id"]

    async def test_photo_is_optional(self, client: AsyncClient):
        response = await client.post("/webapp", json={"user_id": 42})

        assert response.status_code == 201
        assert response.json()["user"]["photo_url"] is None

    async def test_player_view(self, client: AsyncClient):
        await _register(client, 42)

        response = await client.get("/webapp/42")

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["user_id"] == 42
        assert body["character"]["currentLevel"] == 0
        assert body["character"]["experienceToNextLevel"] == 50
        assert len(body["experience_levels"]) == 11
        assert body["experience_levels"][10]["max_experience"] == 5500

    async def test_unknown_player_view(self, client: AsyncClient):
        response = await client.get("/webapp/999")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestBattles:
    async def test_list_empty(self, client: AsyncClient):
        response = await client.get("/battles")

        assert response.status_code == 200
        assert response.json() == {"battles": []}

    async def test_list_with_filter(self, client: AsyncClient):
        await _register(client, 42)
        await _register(client, 43)
        waiting = await _create_battle(client, 42)
        joined = await _create_battle(client, 42)
        await client.post(f"/battles/{joined['id']}/join", json={"user_id": 43})

        everything = (await client.get("/battles")).json()["battles"]
        only_waiting = (await client.get("/battles", params={"status": "waiting"})).json()[
            "battles"
        ]

        assert {battle["id"] for battle in everything} == {waiting["id"], joined["id"]}
        assert [battle["id"] for battle in only_waiting] == [waiting["id"]]
        assert only_waiting[0]["creator_photo"] == "https://t.me/i/42.jpg"

    async def test_unknown_status_filter(self, client: AsyncClient):
        response = await client.get("/battles", params={"status": "paused"})

        assert response.status_code == 400

    async def test_get_battle(self, client: AsyncClient):
        await _register(client, 42)
        battle = await _create_battle(client, 42)

        response = await client.get(f"/battles/{battle['id']}")

        assert response.status_code == 200
        assert response.json()["battle"]["id"] == battle["id"]

    async def test_get_missing_battle(self, client: AsyncClient):
        response = await client.get(f"/battles/{uuid.uuid4()}")

        assert response.status_code == 404

    async def test_create_for_unknown_player(self, client: AsyncClient):
        response = await client.post("/battles", json={"user_id": 999})

        assert response.status_code == 404

    async def test_self_join(self, client: AsyncClient):
        await _register(client, 42)
        battle = await _create_battle(client, 42)

        response = await client.post(f"/battles/{battle['id']}/join", json={"user_id": 42})

        assert response.status_code == 409

    async def test_join_invalid_id(self, client: AsyncClient):
        await _register(client, 43)

        response = await client.post("/battles/not-a-battle/join", json={"user_id": 43})

        assert response.status_code == 400

    async def test_cancel(self, client: AsyncClient):
        await _register(client, 42)
        battle = await _create_battle(client, 42)

        response = await client.delete(f"/battles/{battle['id']}/delete")

        assert response.status_code == 200
        assert response.json()["message"] == "Battle cancelled successfully"
        assert (await client.get(f"/battles/{battle['id']}")).status_code == 404

    async def test_cancel_invalid_id(self, client: AsyncClient):
        response = await client.delete("/battles/12/delete")

        assert response.status_code == 400

    async def test_cancel_missing_battle(self, client: AsyncClient):
        response = await client.delete(f"/battles/{uuid.uuid4()}/delete")

        assert response.status_code == 404

    async def test_concurrent_joins(self, client: AsyncClient):
        for user_id in (42, 43, 44):
            await _register(client, user_id)
        battle = await _create_battle(client, 42)

        responses = await asyncio.gather(
            client.post(f"/battles/{battle['id']}/join", json={"user_id": 43}),
            client.post(f"/battles/{battle['id']}/join", json={"user_id": 44}),
        )

        assert sorted(response.status_code for response in responses) == [200, 404]


class TestEndToEnd:
    async def test_register_create_join_then_cancel_fails(self, client: AsyncClient):
        registered = await client.post("/webapp", json={"user_id": 42, "photo_url": None})
        assert registered.status_code == 201
        character = registered.json()["character"]
        assert character["experience"] == 0
        assert character["level"] == 0

        await _register(client, 43)

        created = await client.post("/battles", json={"user_id": 42})
        assert created.status_code == 200
        battle = created.json()["battle"]
        assert battle["status"] == "waiting"
        assert battle["creator_id"] == 42
        assert battle["opponent_id"] is None

        joined = await client.post(f"/battles/{battle['id']}/join", json={"user_id": 43})
        assert joined.status_code == 200
        assert joined.json()["battle"]["status"] == "in_progress"
        assert joined.json()["battle"]["opponent_id"] == 43

        cancelled = await client.delete(f"/battles/{battle['id']}/delete")
        assert cancelled.status_code in {400, 404}
        assert (await client.get(f"/battles/{battle['id']}")).json()["battle"][
            "status"
        ] == "in_progress"


class TestLegacyBattles:
    async def test_lists_integer_id_battles(self, db_engine: AsyncEngine):
        """A battles table from an older revision keeps its SERIAL ids."""
        async with db_engine.begin() as conn:
            await conn.execute(
                sqlalchemy.text(
                    "CREATE TABLE battles ("
                    "id INTEGER PRIMARY KEY, "
                    "creator_id BIGINT NOT NULL, "
                    "opponent_id BIGINT, "
                    "status VARCHAR(50) DEFAULT 'waiting', "
                    "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
                )
            )
            await conn.execute(
                sqlalchemy.text("INSERT INTO battles (id, creator_id) VALUES (1, 42)")
            )

        async with (
            app_lifespan(app),
            AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client,
        ):
            response = await client.get("/battles")

        assert response.status_code == 200
        [battle] = response.json()["battles"]
        assert battle["id"] == "1"
        assert battle["name"] == ""
        assert battle["status"] == "waiting"
