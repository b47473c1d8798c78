"""Load players and write cached rating/record projections."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.ratings.common import PlayerSnapshot
from domain.reconciliation import PlayerReconciliation
from models import Player


def player_to_snapshot(player: Player) -> PlayerSnapshot:
    return PlayerSnapshot(
        player_id=player.id,
        name=player.name,
        rating=player.rating,
        baseline_rating=player.baseline_rating,
        wins=player.wins,
        losses=player.losses,
        draws=player.draws,
        points_for=player.points_for,
        points_against=player.points_against,
        excluded=player.excluded_from_rankings,
        active=player.active,
    )


def fetch_players(session: Session, player_ids: Iterable[str] | None = None) -> dict[str, PlayerSnapshot]:
    """Fetch players keyed by id, optionally restricted to ``player_ids``."""
    statement = select(Player).order_by(Player.id)
    if player_ids is not None:
        statement = statement.where(Player.id.in_(list(player_ids)))
    return {player.id: player_to_snapshot(player) for player in session.execute(statement).scalars()}


def create_player(
    session: Session,
    *,
    player_id: str,
    name: str,
    baseline_rating: float,
    excluded: bool = False,
) -> Player:
    player = Player(
        id=player_id,
        name=name,
        rating=baseline_rating,
        baseline_rating=baseline_rating,
        wins=0,
        losses=0,
        draws=0,
        points_for=0,
        points_against=0,
        excluded_from_rankings=excluded,
        active=True,
    )
    session.add(player)
    session.flush()
    return player


def apply_reconciliation(session: Session, result: PlayerReconciliation) -> bool:
    """Overwrite one player's cached fields; return True when anything changed."""
    player = session.get(Player, result.player_id)
    if player is None:
        raise LookupError(f"player_id={result.player_id} does not exist")

    updates = {
        "rating": result.final_rating,
        "wins": result.stats.wins,
        "losses": result.stats.losses,
        "draws": result.stats.draws,
        "points_for": result.stats.points_for,
        "points_against": result.stats.points_against,
    }
    changed = any(getattr(player, field) != value for field, value in updates.items())
    if changed:
        for field, value in updates.items():
            setattr(player, field, value)
        session.flush()
    return changed


__all__ = ["apply_reconciliation", "create_player", "fetch_players", "player_to_snapshot"]
