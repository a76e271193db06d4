"""
Fan-out of a deletion intent into per-rule DataStore deletes.

Every (game, rule) pair is an independent unit: it produces exactly one
outcome, either a history record or an error-log record, and a failing
unit never stops the units after it.
"""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from forgetbridge.erasure.models import (
    DeletionIntent,
    DispatchReport,
    OutcomeStatus,
    RuleOutcome,
)
from forgetbridge.erasure.templates import render_key_template
from forgetbridge.shared.exceptions import DataStoreDeleteError
from forgetbridge.shared.logging import get_logger, log_with_context
from forgetbridge.storage.models import Game, Rule
from forgetbridge.storage.repository import ErasureRepositoryProtocol

logger = get_logger(__name__)

DEFAULT_SCOPE = "global"


class DataStoreClientProtocol(Protocol):
    """Protocol for the external DataStore delete call."""

    async def delete_entry(
        self,
        universe_id: str,
        api_key: str | None,
        datastore_name: str,
        scope: str,
        entry_key: str,
    ) -> None:
        """Delete one entry; raise DataStoreDeleteError on failure."""
        ...


@dataclass(frozen=True)
class _GameTarget:
    # Plain copies of the ORM rows: a rollback after a failed unit expires
    # ORM instances, and async sessions cannot lazily refresh them.
    id: str
    universe_id: str
    label: str
    api_key: str | None

    @classmethod
    def from_game(cls, game: Game) -> "_GameTarget":
        key = game.data_store_api_key
        return cls(
            id=game.id,
            universe_id=str(game.universe_id),
            label=game.label,
            api_key=key.api_key if key is not None else None,
        )


@dataclass(frozen=True)
class _RuleTarget:
    id: str
    datastore_name: str
    key_pattern: str
    scope: str | None

    @classmethod
    def from_rule(cls, rule: Rule) -> "_RuleTarget":
        return cls(
            id=rule.id,
            datastore_name=rule.datastore_name,
            key_pattern=rule.key_pattern,
            scope=rule.scope,
        )


class DeletionDispatcher:
    """Resolves games and rules for an intent and executes the deletes."""

    def __init__(
        self,
        repository: ErasureRepositoryProtocol,
        datastore_client: DataStoreClientProtocol,
    ) -> None:
        """Initialize dispatcher.

        Args:
            repository: Rule repository and audit store for this request.
            datastore_client: Client for the external delete API.
        """
        self._repository = repository
        self._datastore_client = datastore_client

    async def dispatch(self, intent: DeletionIntent) -> DispatchReport:
        """Delete the user's entries for every game named in the intent.

        Unknown universe ids are skipped without an error-log entry. The
        walk is sequential: games in notification order, then rules in
        repository order.

        Args:
            intent: Parsed deletion intent.

        Returns:
            Report with one outcome per attempted rule.
        """
        report = DispatchReport(user_id=intent.user_id)

        games = {
            target.universe_id: target
            for target in (_GameTarget.from_game(g) for g in await self._repository.get_games())
        }

        for universe_id in intent.universe_ids:
            game = games.get(universe_id)
            if game is None:
                logger.info(
                    "Universe not registered; skipping",
                    extra={"universe_id": universe_id},
                )
                report.skipped_universe_ids.append(universe_id)
                continue

            rules = [_RuleTarget.from_rule(r) for r in await self._repository.get_rules(game.id)]
            for rule in rules:
                outcome = await self._delete_rule(intent.user_id, game, rule)
                report.outcomes.append(outcome)

        log_with_context(
            logger,
            logging.INFO,
            "Deletion dispatch finished",
            user_id=intent.user_id,
            succeeded=len(report.succeeded),
            failed=len(report.failed),
            skipped_universe_ids=report.skipped_universe_ids,
        )
        return report

    async def _delete_rule(
        self,
        user_id: str,
        game: _GameTarget,
        rule: _RuleTarget,
    ) -> RuleOutcome:
        datastore_name = render_key_template(rule.datastore_name, user_id)
        entry_key = render_key_template(rule.key_pattern, user_id)
        scope = rule.scope or DEFAULT_SCOPE

        try:
            await self._datastore_client.delete_entry(
                universe_id=game.universe_id,
                api_key=game.api_key,
                datastore_name=datastore_name,
                scope=scope,
                entry_key=entry_key,
            )
            history = await self._repository.create_history(
                user_id=user_id,
                game_id=game.id,
                rule_ids=[rule.id],
            )
            await self._repository.commit()
        except Exception as exc:
            # Any failure of this unit is recorded and the walk continues.
            await self._safe_rollback(game, rule)
            return await self._record_failure(
                exc,
                game=game,
                rule=rule,
                datastore_name=datastore_name,
                entry_key=entry_key,
                scope=scope,
            )

        return RuleOutcome(
            status=OutcomeStatus.SUCCEEDED,
            universe_id=game.universe_id,
            game_id=game.id,
            rule_id=rule.id,
            datastore_name=datastore_name,
            entry_key=entry_key,
            scope=scope,
            history_id=history.id,
        )

    async def _record_failure(
        self,
        exc: Exception,
        *,
        game: _GameTarget,
        rule: _RuleTarget,
        datastore_name: str,
        entry_key: str,
        scope: str,
    ) -> RuleOutcome:
        if isinstance(exc, DataStoreDeleteError):
            details = exc.details()
        else:
            details = {"status": None, "statusText": None, "data": None}

        error_message = f"Delete operation failed for game {game.label}: {exc}"
        logger.error(
            error_message,
            extra={
                "universe_id": game.universe_id,
                "rule_id": rule.id,
                "status_code": details["status"],
            },
        )

        try:
            await self._repository.create_error_log(
                f"{error_message}\nDetails: {json.dumps(details, default=str)}",
                game.universe_id,
            )
            await self._repository.commit()
        except Exception:
            logger.exception(
                "Failed to write error log",
                extra={"universe_id": game.universe_id, "rule_id": rule.id},
            )
            await self._safe_rollback(game, rule)

        return RuleOutcome(
            status=OutcomeStatus.FAILED,
            universe_id=game.universe_id,
            game_id=game.id,
            rule_id=rule.id,
            datastore_name=datastore_name,
            entry_key=entry_key,
            scope=scope,
            error_message=error_message,
            status_code=details["status"],
            status_text=details["statusText"],
            response_body=details["data"],
        )

    async def _safe_rollback(self, game: _GameTarget, rule: _RuleTarget) -> None:
        try:
            await self._repository.rollback()
        except Exception:
            logger.exception(
                "Rollback failed",
                extra={"universe_id": game.universe_id, "rule_id": rule.id},
            )
