"""players table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Player(Base):
    """Player identity plus cached rating and record projections of the game ledger."""

    __tablename__ = "players"
    __table_args__ = (
        CheckConstraint("wins >= 0 AND losses >= 0 AND draws >= 0", name="ck_players_record"),
        CheckConstraint("points_for >= 0 AND points_against >= 0", name="ck_players_points"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=3.5)
    baseline_rating: Mapped[float] = mapped_column(Float, nullable=False, default=3.5)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    draws: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_for: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_against: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    excluded_from_rankings: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
