"""
Repository for rule lookups and audit-trail writes.
"""

from typing import Protocol, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from forgetbridge.shared.exceptions import NotFoundError
from forgetbridge.storage.models import (
    DataStoreApiKey,
    ErrorLog,
    Game,
    GlobalSettings,
    History,
    HistoryRule,
    Rule,
)


class ErasureRepositoryProtocol(Protocol):
    """Operations the deletion pipeline needs from the relational store."""

    async def get_global_settings(self) -> GlobalSettings | None:
        """Get the global settings row, if any."""
        ...

    async def get_games(self) -> Sequence[Game]:
        """Get all games with their API keys loaded."""
        ...

    async def get_rules(self, game_id: str | None = None) -> Sequence[Rule]:
        """Get rules, optionally restricted to one game."""
        ...

    async def create_history(
        self,
        user_id: str,
        game_id: str,
        rule_ids: Sequence[str],
    ) -> History:
        """Record a successful deletion."""
        ...

    async def create_error_log(self, message: str, universe_id: str | None) -> ErrorLog:
        """Record a failed deletion or processing event."""
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class ErasureRepository:
    """SQLAlchemy implementation of the rule repository and audit store."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    # Global settings

    async def get_global_settings(self) -> GlobalSettings | None:
        result = await self._session.execute(select(GlobalSettings).limit(1))
        return result.scalar_one_or_none()

    async def update_global_settings(self, webhook_auth_key: str | None) -> GlobalSettings:
        """Set the webhook secret, creating the settings row on first use.

        Args:
            webhook_auth_key: New shared secret (``None`` disables authentication).

        Returns:
            The stored settings row.
        """
        settings = await self.get_global_settings()
        if settings is None:
            settings = GlobalSettings(webhook_auth_key=webhook_auth_key)
            self._session.add(settings)
        else:
            settings.webhook_auth_key = webhook_auth_key
        await self._session.flush()
        return settings

    # DataStore API keys

    async def get_api_keys(self) -> Sequence[DataStoreApiKey]:
        result = await self._session.execute(
            select(DataStoreApiKey).order_by(DataStoreApiKey.created_at)
        )
        return result.scalars().all()

    async def create_api_key(self, label: str, api_key: str) -> DataStoreApiKey:
        key = DataStoreApiKey(label=label, api_key=api_key)
        self._session.add(key)
        await self._session.flush()
        return key

    async def delete_api_key(self, api_key_id: str) -> None:
        """Delete an API key together with every game that uses it.

        Raises:
            NotFoundError: If the key does not exist.
        """
        key = await self._session.get(DataStoreApiKey, api_key_id)
        if key is None:
            raise NotFoundError(f"DataStore API key not found: {api_key_id}")

        game_ids = (
            await self._session.execute(select(Game.id).where(Game.api_key_id == api_key_id))
        ).scalars().all()
        for game_id in game_ids:
            await self._delete_game_rows(game_id)

        await self._session.execute(
            delete(DataStoreApiKey).where(DataStoreApiKey.id == api_key_id)
        )
        await self._session.flush()

    # Games

    async def get_games(self) -> Sequence[Game]:
        result = await self._session.execute(select(Game).order_by(Game.created_at))
        return result.scalars().all()

    async def get_game(self, game_id: str) -> Game | None:
        return await self._session.get(Game, game_id)

    async def create_game(
        self,
        label: str,
        universe_id: int,
        api_key_id: str,
        start_place_id: int | None = None,
    ) -> Game:
        game = Game(
            label=label,
            universe_id=universe_id,
            api_key_id=api_key_id,
            start_place_id=start_place_id,
        )
        self._session.add(game)
        await self._session.flush()
        await self._session.refresh(game, attribute_names=["data_store_api_key"])
        return game

    async def delete_game(self, game_id: str) -> None:
        """Delete a game, its rules and any history links to those rules.

        Raises:
            NotFoundError: If the game does not exist.
        """
        if await self._session.get(Game, game_id) is None:
            raise NotFoundError(f"Game not found: {game_id}")
        await self._delete_game_rows(game_id)
        await self._session.flush()

    async def _delete_game_rows(self, game_id: str) -> None:
        rule_ids = select(Rule.id).where(Rule.game_id == game_id)
        await self._session.execute(delete(HistoryRule).where(HistoryRule.rule_id.in_(rule_ids)))
        history_ids = select(History.id).where(History.game_id == game_id)
        await self._session.execute(
            delete(HistoryRule).where(HistoryRule.history_id.in_(history_ids))
        )
        await self._session.execute(delete(History).where(History.game_id == game_id))
        await self._session.execute(delete(Rule).where(Rule.game_id == game_id))
        await self._session.execute(delete(Game).where(Game.id == game_id))

    # Rules

    async def get_rules(self, game_id: str | None = None) -> Sequence[Rule]:
        stmt = select(Rule).order_by(Rule.created_at)
        if game_id is not None:
            stmt = stmt.where(Rule.game_id == game_id)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create_rule(
        self,
        game_id: str,
        label: str,
        datastore_name: str,
        key_pattern: str,
        scope: str | None = None,
        datastore_type: str = "standard",
    ) -> Rule:
        rule = Rule(
            game_id=game_id,
            label=label,
            datastore_name=datastore_name,
            datastore_type=datastore_type,
            key_pattern=key_pattern,
            scope=scope,
        )
        self._session.add(rule)
        await self._session.flush()
        return rule

    async def delete_rule(self, rule_id: str) -> None:
        if await self._session.get(Rule, rule_id) is None:
            raise NotFoundError(f"Rule not found: {rule_id}")
        await self._session.execute(delete(HistoryRule).where(HistoryRule.rule_id == rule_id))
        await self._session.execute(delete(Rule).where(Rule.id == rule_id))
        await self._session.flush()

    # History

    async def create_history(
        self,
        user_id: str,
        game_id: str,
        rule_ids: Sequence[str],
    ) -> History:
        """Record a successful deletion.

        Args:
            user_id: Erased user.
            game_id: Internal game id.
            rule_ids: Rules that were executed.

        Returns:
            The created history with its rule links loaded.

        Raises:
            NotFoundError: If the game or any of the rules does not exist.
        """
        if await self._session.get(Game, game_id) is None:
            raise NotFoundError(f"Game not found: {game_id}")

        found = set(
            (await self._session.execute(select(Rule.id).where(Rule.id.in_(list(rule_ids)))))
            .scalars()
            .all()
        )
        missing = [rule_id for rule_id in rule_ids if rule_id not in found]
        if missing:
            raise NotFoundError(f"Rules not found: {', '.join(missing)}")

        history = History(user_id=user_id, game_id=game_id)
        self._session.add(history)
        await self._session.flush()

        for rule_id in dict.fromkeys(rule_ids):
            self._session.add(HistoryRule(history_id=history.id, rule_id=rule_id))
        await self._session.flush()

        return await self._load_history(history.id)

    async def _load_history(self, history_id: str) -> History:
        stmt = (
            select(History)
            .where(History.id == history_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def get_history(self, history_id: str) -> History | None:
        result = await self._session.execute(select(History).where(History.id == history_id))
        return result.scalar_one_or_none()

    async def get_histories(self, game_id: str | None = None) -> Sequence[History]:
        stmt = select(History).order_by(History.created_at.desc())
        if game_id is not None:
            stmt = stmt.where(History.game_id == game_id)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def get_histories_by_user_id(self, user_id: str) -> Sequence[History]:
        stmt = (
            select(History)
            .where(History.user_id == user_id)
            .order_by(History.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    # Error logs

    async def create_error_log(self, message: str, universe_id: str | None) -> ErrorLog:
        entry = ErrorLog(message=message, universe_id=universe_id or None)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def get_error_logs(self, universe_id: str | None = None) -> Sequence[ErrorLog]:
        stmt = select(ErrorLog).order_by(ErrorLog.created_at.desc())
        if universe_id is not None:
            stmt = stmt.where(ErrorLog.universe_id == universe_id)
        result = await self._session.execute(stmt)
        return result.scalars().all()
