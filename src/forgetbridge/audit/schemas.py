"""
Pydantic schemas for the read-only audit endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from forgetbridge.storage.models import ErrorLog, History


class HistoryResponse(BaseModel):
    """A successful deletion."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    game_id: str
    game_label: str | None = None
    universe_id: int | None = None
    rule_ids: list[str] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_model(cls, history: History) -> "HistoryResponse":
        game = history.game
        return cls(
            id=history.id,
            user_id=history.user_id,
            game_id=history.game_id,
            game_label=game.label if game is not None else None,
            universe_id=game.universe_id if game is not None else None,
            rule_ids=sorted(history.rule_ids),
            created_at=history.created_at,
        )


class HistoryListResponse(BaseModel):
    items: list[HistoryResponse]
    total: int


class ErrorLogResponse(BaseModel):
    """A failed deletion or a recorded webhook receipt."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    universe_id: str | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, entry: ErrorLog) -> "ErrorLogResponse":
        return cls.model_validate(entry)


class ErrorLogListResponse(BaseModel):
    items: list[ErrorLogResponse]
    total: int
