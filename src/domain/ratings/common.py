"""Shared types for the rating and statistics engine."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class GameType(str, Enum):
    """Match format, which fixes the roster size of each team."""

    SINGLES = "singles"
    DOUBLES = "doubles"

    @property
    def team_size(self) -> int:
        return 1 if self is GameType.SINGLES else 2


class Outcome(str, Enum):
    """Result of a match from one participant's point of view."""

    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


@dataclass(frozen=True)
class RatingChange:
    """Rating before and after one match for one participant."""

    player_id: str
    match_id: str
    before: float
    after: float

    @property
    def delta(self) -> float:
        return self.after - self.before


@dataclass(frozen=True)
class MatchRecord:
    """Canonical finalized match payload consumed by the engine."""

    match_id: str
    event_time: datetime
    game_type: GameType
    team1_player_ids: tuple[str, ...]
    team2_player_ids: tuple[str, ...]
    team1_score: int
    team2_score: int
    tournament_id: str | None = None
    quick_play: bool = False
    rating_changes: tuple[RatingChange, ...] = ()

    @property
    def player_ids(self) -> tuple[str, ...]:
        return self.team1_player_ids + self.team2_player_ids

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Replay order: timestamp first, match id as the stable tie-breaker."""
        return (self.event_time, self.match_id)

    def involves(self, player_id: str) -> bool:
        return player_id in self.team1_player_ids or player_id in self.team2_player_ids

    def side_of(self, player_id: str) -> int | None:
        if player_id in self.team1_player_ids:
            return 1
        if player_id in self.team2_player_ids:
            return 2
        return None

    def teammates_of(self, player_id: str) -> tuple[str, ...]:
        side = self.side_of(player_id)
        if side is None:
            return ()
        team = self.team1_player_ids if side == 1 else self.team2_player_ids
        return tuple(other for other in team if other != player_id)

    def opponents_of(self, player_id: str) -> tuple[str, ...]:
        side = self.side_of(player_id)
        if side is None:
            return ()
        return self.team2_player_ids if side == 1 else self.team1_player_ids

    def scores_for(self, player_id: str) -> tuple[int, int]:
        """Return (own_score, opponent_score) for a participant."""
        side = self.side_of(player_id)
        if side is None:
            raise ValueError(f"player_id={player_id} did not play match_id={self.match_id}")
        if side == 1:
            return self.team1_score, self.team2_score
        return self.team2_score, self.team1_score

    def outcome_for(self, player_id: str) -> Outcome:
        own, opponent = self.scores_for(player_id)
        if own > opponent:
            return Outcome.WIN
        if own < opponent:
            return Outcome.LOSS
        return Outcome.DRAW

    def rating_change_for(self, player_id: str) -> RatingChange | None:
        for change in self.rating_changes:
            if change.player_id == player_id:
                return change
        return None


@dataclass(frozen=True)
class PlayerSnapshot:
    """Player identity plus cached projections of the match ledger."""

    player_id: str
    name: str
    rating: float
    baseline_rating: float
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points_for: int = 0
    points_against: int = 0
    excluded: bool = False
    active: bool = True


@dataclass(frozen=True)
class PlayerStats:
    """Win/loss/point totals accumulated over a set of matches."""

    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def points_difference(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.wins / float(self.games_played)

    def add(self, outcome: Outcome, own_score: int, opponent_score: int) -> PlayerStats:
        return PlayerStats(
            games_played=self.games_played + 1,
            wins=self.wins + (1 if outcome is Outcome.WIN else 0),
            losses=self.losses + (1 if outcome is Outcome.LOSS else 0),
            draws=self.draws + (1 if outcome is Outcome.DRAW else 0),
            points_for=self.points_for + own_score,
            points_against=self.points_against + opponent_score,
        )


@dataclass(frozen=True)
class RatingHistoryPoint:
    """One entry of a player's reconciled rating timeline."""

    player_id: str
    match_id: str
    event_time: datetime
    before: float
    after: float
    outcome: Outcome
    opponent_ids: tuple[str, ...] = field(default=())

    @property
    def rating(self) -> float:
        return self.after

    @property
    def delta(self) -> float:
        return self.after - self.before


def sort_matches(matches: Iterable[MatchRecord]) -> list[MatchRecord]:
    """Return matches in replay order regardless of the caller's fetch order."""
    return sorted(matches, key=lambda match: match.sort_key)


def matches_for_player(matches: Iterable[MatchRecord], player_id: str) -> list[MatchRecord]:
    """Restrict a match list to one player's participation, in replay order."""
    return sort_matches([match for match in matches if match.involves(player_id)])
