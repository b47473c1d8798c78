"""Tournament standings and public rankings."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from domain.ratings.common import MatchRecord, PlayerSnapshot
from domain.stats.head_to_head import compute_player_stats


@dataclass(frozen=True)
class Standing:
    player_id: str
    games_played: int
    wins: int
    losses: int
    draws: int
    points_for: int
    points_against: int

    @property
    def points_difference(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_percentage(self) -> float:
        if self.games_played == 0:
            return 0.0
        return (self.wins / float(self.games_played)) * 100.0


def compute_standings(
    player_ids: Sequence[str],
    matches: Iterable[MatchRecord],
    *,
    tournament_id: str | None = None,
) -> list[Standing]:
    """Standings for registered players, by win percentage then point difference.

    Players with no games in scope are listed after everyone who played.
    """
    scoped = [
        match
        for match in matches
        if tournament_id is None or match.tournament_id == tournament_id
    ]

    standings = []
    for player_id in player_ids:
        stats = compute_player_stats(player_id, scoped)
        standings.append(
            Standing(
                player_id=player_id,
                games_played=stats.games_played,
                wins=stats.wins,
                losses=stats.losses,
                draws=stats.draws,
                points_for=stats.points_for,
                points_against=stats.points_against,
            )
        )

    # players without games sit below everyone who played
    standings.sort(
        key=lambda item: (item.games_played == 0, -item.win_percentage, -item.points_difference, item.player_id)
    )
    return standings


def public_rankings(players: Iterable[PlayerSnapshot]) -> list[PlayerSnapshot]:
    """Active, non-excluded players ordered by rating."""
    ranked = [player for player in players if player.active and not player.excluded]
    ranked.sort(key=lambda player: (-player.rating, player.name, player.player_id))
    return ranked


__all__ = ["Standing", "compute_standings", "public_rankings"]
