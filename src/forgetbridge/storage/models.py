"""
SQLAlchemy models for games, rules and the deletion audit trail.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forgetbridge.shared.database import Base


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GlobalSettings(Base):
    """Single-row table holding deployment-wide settings."""

    __tablename__ = "global_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    webhook_auth_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class DataStoreApiKey(Base):
    """Open Cloud API key; one key may serve several games."""

    __tablename__ = "datastore_api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    api_key: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    games: Mapped[list["Game"]] = relationship(
        "Game",
        back_populates="data_store_api_key",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        # never print the key itself
        return f"<DataStoreApiKey(id={self.id}, label={self.label})>"


class Game(Base):
    """A game (tenant) whose DataStores hold user data."""

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    universe_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
        index=True,
    )
    start_place_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    api_key_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("datastore_api_keys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    data_store_api_key: Mapped[DataStoreApiKey] = relationship(
        "DataStoreApiKey",
        back_populates="games",
        lazy="selectin",
    )
    rules: Mapped[list["Rule"]] = relationship(
        "Rule",
        back_populates="game",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Game(id={self.id}, universe_id={self.universe_id}, label={self.label})>"


class Rule(Base):
    """One DataStore entry pattern to delete for a user of a game."""

    __tablename__ = "rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    game_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    datastore_name: Mapped[str] = mapped_column(String(255), nullable=False)
    datastore_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="standard",
    )
    key_pattern: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    game: Mapped[Game] = relationship("Game", back_populates="rules", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Rule(id={self.id}, datastore={self.datastore_name}, key={self.key_pattern})>"


class History(Base):
    """Audit record of a successful deletion."""

    __tablename__ = "histories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    game_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )

    game: Mapped[Game] = relationship("Game", lazy="selectin")
    rules: Mapped[list["HistoryRule"]] = relationship(
        "HistoryRule",
        back_populates="history",
        lazy="selectin",
    )

    @property
    def rule_ids(self) -> list[str]:
        return [link.rule_id for link in self.rules]


class HistoryRule(Base):
    """Link between a history record and the rules it executed."""

    __tablename__ = "history_rules"

    history_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("histories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    rule_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rules.id", ondelete="CASCADE"),
        primary_key=True,
    )

    history: Mapped[History] = relationship("History", back_populates="rules")
    rule: Mapped[Rule] = relationship("Rule", lazy="selectin")


class ErrorLog(Base):
    """Audit record of a failed deletion or other processing event."""

    __tablename__ = "error_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    universe_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
