"""
Tests for the erasure repository.
"""

from uuid import uuid4

import pytest

from forgetbridge.shared.exceptions import NotFoundError
from forgetbridge.storage.repository import ErasureRepository

from conftest import seed_game

RULES = [
    {"label": "Profile", "datastore_name": "PlayerData", "key_pattern": "user_{userId}"},
    {
        "label": "Inventory",
        "datastore_name": "Inventory_{userId}",
        "key_pattern": "{playerId}",
        "scope": "inv",
    },
]


class TestGlobalSettings:
    @pytest.mark.asyncio
    async def test_missing_settings(self, repository: ErasureRepository) -> None:
        assert await repository.get_global_settings() is None

    @pytest.mark.asyncio
    async def test_update_creates_then_updates(self, repository: ErasureRepository) -> None:
        created = await repository.update_global_settings("first")
        updated = await repository.update_global_settings("second")

        assert created.id == updated.id
        settings = await repository.get_global_settings()
        assert settings is not None
        assert settings.webhook_auth_key == "second"


class TestGamesAndRules:
    @pytest.mark.asyncio
    async def test_games_carry_api_key(self, repository: ErasureRepository) -> None:
        await seed_game(repository, universe_id=1001, api_key="key-1")

        games = await repository.get_games()

        assert len(games) == 1
        assert games[0].universe_id == 1001
        assert games[0].data_store_api_key.api_key == "key-1"

    @pytest.mark.asyncio
    async def test_rules_filtered_by_game(self, repository: ErasureRepository) -> None:
        first = await seed_game(repository, universe_id=1001, rules=RULES)
        await seed_game(repository, universe_id=2002, label="Other", rules=RULES[:1])

        rules = await repository.get_rules(first.game.id)

        assert {r.label for r in rules} == {"Profile", "Inventory"}
        assert len(await repository.get_rules()) == 3

    @pytest.mark.asyncio
    async def test_delete_game_removes_rules_and_history(
        self,
        repository: ErasureRepository,
    ) -> None:
        seeded = await seed_game(repository, rules=RULES)
        await repository.create_history("42", seeded.game.id, [seeded.rules[0].id])
        await repository.commit()

        await repository.delete_game(seeded.game.id)
        await repository.commit()

        assert await repository.get_games() == []
        assert await repository.get_rules() == []
        assert await repository.get_histories() == []

    @pytest.mark.asyncio
    async def test_delete_api_key_cascades_to_games(self, repository: ErasureRepository) -> None:
        seeded = await seed_game(repository, rules=RULES)

        await repository.delete_api_key(seeded.game.api_key_id)
        await repository.commit()

        assert await repository.get_api_keys() == []
        assert await repository.get_games() == []

    @pytest.mark.asyncio
    async def test_delete_unknown_rule(self, repository: ErasureRepository) -> None:
        with pytest.raises(NotFoundError):
            await repository.delete_rule(str(uuid4()))


class TestHistory:
    @pytest.mark.asyncio
    async def test_create_history_links_rules(self, repository: ErasureRepository) -> None:
        seeded = await seed_game(repository, rules=RULES)
        rule_ids = [r.id for r in seeded.rules]

        history = await repository.create_history("42", seeded.game.id, rule_ids)
        await repository.commit()

        assert history.user_id == "42"
        assert history.game_id == seeded.game.id
        assert sorted(history.rule_ids) == sorted(rule_ids)

    @pytest.mark.asyncio
    async def test_unknown_game_rejected(self, repository: ErasureRepository) -> None:
        seeded = await seed_game(repository, rules=RULES)

        with pytest.raises(NotFoundError):
            await repository.create_history("42", str(uuid4()), [seeded.rules[0].id])

    @pytest.mark.asyncio
    async def test_unknown_rule_rejected(self, repository: ErasureRepository) -> None:
        seeded = await seed_game(repository, rules=RULES)

        with pytest.raises(NotFoundError) as exc_info:
            await repository.create_history("42", seeded.game.id, ["missing-rule"])

        assert "missing-rule" in str(exc_info.value)
        assert await repository.get_histories() == []

    @pytest.mark.asyncio
    async def test_histories_by_user_newest_first(self, repository: ErasureRepository) -> None:
        seeded = await seed_game(repository, rules=RULES)
        first = await repository.create_history("42", seeded.game.id, [seeded.rules[0].id])
        second = await repository.create_history("42", seeded.game.id, [seeded.rules[1].id])
        await repository.create_history("7", seeded.game.id, [seeded.rules[0].id])
        await repository.commit()

        histories = await repository.get_histories_by_user_id("42")

        assert [h.id for h in histories] == [second.id, first.id]
        assert await repository.get_history(first.id) is not None
        assert await repository.get_history("nope") is None


class TestErrorLogs:
    @pytest.mark.asyncio
    async def test_create_and_list(self, repository: ErasureRepository) -> None:
        await repository.create_error_log("boom", "1001")
        await repository.create_error_log("receipt", "")
        await repository.commit()

        entries = await repository.get_error_logs()

        assert [e.message for e in entries] == ["receipt", "boom"]
        assert entries[0].universe_id is None
        assert [e.message for e in await repository.get_error_logs("1001")] == ["boom"]
