"""
Domain models for deletion intents and per-rule outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class DeletionIntent:
    """Structured "delete this user from these games" request.

    ``universe_ids`` keeps the order and any duplicates of the notification.
    """

    user_id: str
    universe_ids: tuple[str, ...]


class OutcomeStatus(str, Enum):
    """Result of one (game, rule) deletion unit."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RuleOutcome:
    """Outcome of deleting one rule's entry for one game."""

    status: OutcomeStatus
    universe_id: str
    game_id: str
    rule_id: str
    datastore_name: str
    entry_key: str
    scope: str
    history_id: str | None = None
    error_message: str | None = None
    status_code: int | None = None
    status_text: str | None = None
    response_body: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


@dataclass
class DispatchReport:
    """Everything one dispatch did, in execution order."""

    user_id: str
    outcomes: list[RuleOutcome] = field(default_factory=list)
    skipped_universe_ids: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SUCCEEDED]

    @property
    def failed(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]
