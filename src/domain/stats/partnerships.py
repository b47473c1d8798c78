"""Partnership records for players who shared a team."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from domain.ratings.common import MatchRecord, Outcome, PlayerStats, sort_matches


@dataclass(frozen=True)
class Partnership:
    player_id: str
    partner_id: str
    games_played: int
    wins: int
    losses: int
    draws: int
    points_for: int
    points_against: int

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.wins / float(self.games_played)


def compute_partnerships(player_id: str, matches: Iterable[MatchRecord]) -> list[Partnership]:
    """Aggregate every teammate of ``player_id``, most frequent partner first."""
    totals: dict[str, PlayerStats] = {}
    for match in sort_matches(matches):
        teammates = match.teammates_of(player_id)
        if not teammates:
            continue
        outcome: Outcome = match.outcome_for(player_id)
        own, opponent = match.scores_for(player_id)
        for partner_id in teammates:
            totals[partner_id] = totals.get(partner_id, PlayerStats()).add(outcome, own, opponent)

    partnerships = [
        Partnership(
            player_id=player_id,
            partner_id=partner_id,
            games_played=stats.games_played,
            wins=stats.wins,
            losses=stats.losses,
            draws=stats.draws,
            points_for=stats.points_for,
            points_against=stats.points_against,
        )
        for partner_id, stats in totals.items()
    ]
    partnerships.sort(key=lambda item: (-item.games_played, item.partner_id))
    return partnerships


def compute_partnership(
    player_id: str,
    partner_id: str,
    matches: Iterable[MatchRecord],
) -> Partnership:
    """Record of one specific pairing; zero games when they never teamed up."""
    for partnership in compute_partnerships(player_id, matches):
        if partnership.partner_id == partner_id:
            return partnership
    return Partnership(
        player_id=player_id,
        partner_id=partner_id,
        games_played=0,
        wins=0,
        losses=0,
        draws=0,
        points_for=0,
        points_against=0,
    )


__all__ = ["Partnership", "compute_partnership", "compute_partnerships"]
