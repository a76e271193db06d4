"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from forgetbridge.config import Settings
from forgetbridge.main import create_app
from forgetbridge.shared.database import DatabaseManager
from forgetbridge.shared.exceptions import DataStoreDeleteError
from forgetbridge.storage.models import Game, Rule
from forgetbridge.storage.repository import ErasureRepository

ADMIN_TOKEN = "test-admin-token"


@dataclass
class DeleteCall:
    universe_id: str
    api_key: str | None
    datastore_name: str
    scope: str
    entry_key: str


@dataclass
class FakeDataStoreClient:
    """Records delete calls; entry keys listed in ``failures`` raise."""

    calls: list[DeleteCall] = field(default_factory=list)
    failures: dict[str, DataStoreDeleteError] = field(default_factory=dict)
    closed: bool = False

    async def delete_entry(
        self,
        universe_id: str,
        api_key: str | None,
        datastore_name: str,
        scope: str,
        entry_key: str,
    ) -> None:
        self.calls.append(DeleteCall(universe_id, api_key, datastore_name, scope, entry_key))
        if entry_key in self.failures:
            raise self.failures[entry_key]

    async def close(self) -> None:
        self.closed = True


def forbidden_error() -> DataStoreDeleteError:
    return DataStoreDeleteError(
        "Request failed with status code 403",
        status_code=403,
        status_text="Forbidden",
        response_body={"error": "PERMISSION_DENIED", "message": "Insufficient scope"},
    )


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        app_env="dev",
        debug=False,
        database_url="sqlite+aiosqlite:///:memory:",
        webhook_auth_key="",
        record_webhook_receipt=False,
        admin_api_token=ADMIN_TOKEN,
    )


@pytest_asyncio.fixture
async def db_manager(test_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """In-memory database with all tables created."""
    manager = DatabaseManager(test_settings.database_url, echo=False)
    await manager.create_all()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def repository(db_session: AsyncSession) -> ErasureRepository:
    return ErasureRepository(db_session)


@pytest.fixture
def datastore_client() -> FakeDataStoreClient:
    return FakeDataStoreClient()


@dataclass
class SeededGame:
    game: Game
    rules: list[Rule]


async def seed_game(
    repository: ErasureRepository,
    universe_id: int = 1001,
    label: str = "Obby Tycoon",
    api_key: str = "game-api-key",
    rules: list[dict[str, Any]] | None = None,
) -> SeededGame:
    """Create an API key, a game and its rules, and commit."""
    key = await repository.create_api_key(label=f"{label} key", api_key=api_key)
    game = await repository.create_game(label=label, universe_id=universe_id, api_key_id=key.id)
    created = []
    for rule in rules or []:
        created.append(await repository.create_rule(game_id=game.id, **rule))
    await repository.commit()
    return SeededGame(game=game, rules=created)


@pytest.fixture
def app(
    test_settings: Settings,
    db_manager: DatabaseManager,
    datastore_client: FakeDataStoreClient,
) -> FastAPI:
    return create_app(
        settings=test_settings,
        db_manager=db_manager,
        datastore_client=datastore_client,  # type: ignore[arg-type]
    )


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
