"""games and game_participants table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base


class Game(Base):
    """One finalized match."""

    __tablename__ = "games"
    __table_args__ = (
        CheckConstraint("game_type IN ('singles', 'doubles')", name="ck_games_game_type"),
        CheckConstraint("team1_score >= 0 AND team2_score >= 0", name="ck_games_scores"),
        Index("idx_games_event_time", "event_time", "id"),
        Index("idx_games_tournament", "tournament_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    game_type: Mapped[str] = mapped_column(String(16), nullable=False)
    team1_score: Mapped[int] = mapped_column(Integer, nullable=False)
    team2_score: Mapped[int] = mapped_column(Integer, nullable=False)
    tournament_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    quick_play: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )

    participants: Mapped[list[GameParticipant]] = relationship(
        back_populates="game",
        cascade="all, delete-orphan",
    )
    rating_changes: Mapped[list[GameRatingChange]] = relationship(
        back_populates="game",
        cascade="all, delete-orphan",
    )


class GameParticipant(Base):
    """Roster entry: which player played on which team of a game."""

    __tablename__ = "game_participants"
    __table_args__ = (
        UniqueConstraint("game_id", "player_id", name="uq_game_participants_game_player"),
        CheckConstraint("team IN (1, 2)", name="ck_game_participants_team"),
        CheckConstraint("slot IN (1, 2)", name="ck_game_participants_slot"),
        Index("idx_game_participants_player", "player_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    team: Mapped[int] = mapped_column(Integer, nullable=False)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)

    game: Mapped[Game] = relationship(back_populates="participants")


class GameRatingChange(Base):
    """Per-player rating before/after one game."""

    __tablename__ = "game_rating_changes"
    __table_args__ = (
        UniqueConstraint("game_id", "player_id", name="uq_game_rating_changes_game_player"),
        Index("idx_game_rating_changes_player", "player_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    rating_before: Mapped[float] = mapped_column(Float, nullable=False)
    rating_after: Mapped[float] = mapped_column(Float, nullable=False)

    game: Mapped[Game] = relationship(back_populates="rating_changes")
