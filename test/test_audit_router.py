"""
Tests for the read-only audit endpoints.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from forgetbridge.storage.repository import ErasureRepository

from conftest import ADMIN_TOKEN, seed_game

AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

RULES = [
    {"label": "Profile", "datastore_name": "PlayerData", "key_pattern": "Player_{userId}"},
    {"label": "Inventory", "datastore_name": "Inventory", "key_pattern": "inv_{userId}"},
]


class TestAdminToken:
    @pytest.mark.asyncio
    async def test_missing_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/histories")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get(
            "/api/error-logs",
            headers={"Authorization": "Bearer nope"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_disabled_without_configured_token(
        self,
        app: FastAPI,
        async_client: AsyncClient,
    ) -> None:
        app.state.settings = app.state.settings.model_copy(update={"admin_api_token": ""})

        response = await async_client.get("/api/histories", headers=AUTH)

        assert response.status_code == 503


class TestHistories:
    @pytest.mark.asyncio
    async def test_list_and_filter(
        self,
        async_client: AsyncClient,
        repository: ErasureRepository,
    ) -> None:
        first = await seed_game(repository, universe_id=1001, label="Obby", rules=RULES)
        second = await seed_game(repository, universe_id=2002, label="Race", rules=RULES[:1])
        await repository.create_history("42", first.game.id, [r.id for r in first.rules])
        await repository.create_history("7", second.game.id, [second.rules[0].id])
        await repository.commit()

        response = await async_client.get("/api/histories", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [item["user_id"] for item in data["items"]] == ["7", "42"]

        response = await async_client.get(
            "/api/histories",
            params={"game_id": first.game.id},
            headers=AUTH,
        )
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["game_label"] == "Obby"
        assert items[0]["universe_id"] == 1001
        assert items[0]["rule_ids"] == sorted(r.id for r in first.rules)

    @pytest.mark.asyncio
    async def test_by_user(
        self,
        async_client: AsyncClient,
        repository: ErasureRepository,
    ) -> None:
        seeded = await seed_game(repository, rules=RULES[:1])
        await repository.create_history("42", seeded.game.id, [seeded.rules[0].id])
        await repository.create_history("7", seeded.game.id, [seeded.rules[0].id])
        await repository.commit()

        response = await async_client.get("/api/histories/by-user/42", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["user_id"] == "42"

    @pytest.mark.asyncio
    async def test_get_one(
        self,
        async_client: AsyncClient,
        repository: ErasureRepository,
    ) -> None:
        seeded = await seed_game(repository, rules=RULES[:1])
        history = await repository.create_history("42", seeded.game.id, [seeded.rules[0].id])
        await repository.commit()

        response = await async_client.get(f"/api/histories/{history.id}", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["id"] == history.id

    @pytest.mark.asyncio
    async def test_get_unknown(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/histories/does-not-exist", headers=AUTH)
        assert response.status_code == 404


class TestErrorLogs:
    @pytest.mark.asyncio
    async def test_list_and_filter(
        self,
        async_client: AsyncClient,
        repository: ErasureRepository,
    ) -> None:
        await repository.create_error_log("first", "1001")
        await repository.create_error_log("second", "2002")
        await repository.commit()

        response = await async_client.get("/api/error-logs", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [item["message"] for item in data["items"]] == ["second", "first"]

        response = await async_client.get(
            "/api/error-logs",
            params={"universe_id": "1001"},
            headers=AUTH,
        )
        assert [item["message"] for item in response.json()["items"]] == ["first"]
