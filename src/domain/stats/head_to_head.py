"""Head-to-head records, streaks and rival rankings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from domain.ratings.common import MatchRecord, Outcome, PlayerStats, sort_matches


@dataclass(frozen=True)
class Streak:
    """A run of identical outcomes; ``outcome`` is None for an empty history."""

    outcome: Outcome | None
    length: int


NO_STREAK = Streak(outcome=None, length=0)


@dataclass(frozen=True)
class RecentResult:
    match_id: str
    event_time: datetime
    outcome: Outcome
    own_score: int
    opponent_score: int


@dataclass(frozen=True)
class HeadToHead:
    """Record of ``player_id`` against ``opponent_id`` when on opposite teams."""

    player_id: str
    opponent_id: str
    games_played: int
    wins: int
    losses: int
    draws: int
    points_for: int
    points_against: int
    current_streak: Streak
    longest_streak: Streak
    recent_results: tuple[RecentResult, ...]

    @property
    def points_difference(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.wins / float(self.games_played)

    @property
    def average_score_difference(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.points_difference / float(self.games_played)


def compute_player_stats(player_id: str, matches: Iterable[MatchRecord]) -> PlayerStats:
    """Accumulate wins, losses, draws and points over every match the player played."""
    stats = PlayerStats()
    for match in matches:
        if not match.involves(player_id):
            continue
        own, opponent = match.scores_for(player_id)
        stats = stats.add(match.outcome_for(player_id), own, opponent)
    return stats


def head_to_head_matches(
    player_id: str,
    opponent_id: str,
    matches: Iterable[MatchRecord],
) -> list[MatchRecord]:
    """Matches where the two players were on opposite teams, oldest first."""
    selected = []
    for match in matches:
        player_side = match.side_of(player_id)
        opponent_side = match.side_of(opponent_id)
        if player_side is None or opponent_side is None or player_side == opponent_side:
            continue
        selected.append(match)
    return sort_matches(selected)


def compute_streaks(outcomes_newest_first: list[Outcome]) -> tuple[Streak, Streak]:
    """Return (current, longest) streaks from outcomes ordered most recent first.

    The current streak counts consecutive identical outcomes from the most recent
    match and stops at the first change. The longest streak scans the whole list;
    on ties the more recent run wins.
    """
    if not outcomes_newest_first:
        return NO_STREAK, NO_STREAK

    current_outcome = outcomes_newest_first[0]
    current_length = 0
    for outcome in outcomes_newest_first:
        if outcome is not current_outcome:
            break
        current_length += 1

    longest = Streak(outcome=current_outcome, length=1)
    run_outcome = current_outcome
    run_length = 0
    for outcome in outcomes_newest_first:
        if outcome is run_outcome:
            run_length += 1
        else:
            run_outcome = outcome
            run_length = 1
        if run_length > longest.length:
            longest = Streak(outcome=run_outcome, length=run_length)

    return Streak(outcome=current_outcome, length=current_length), longest


def compute_head_to_head(
    player_id: str,
    opponent_id: str,
    matches: Iterable[MatchRecord],
    *,
    recent_limit: int = 5,
) -> HeadToHead:
    """Aggregate the record of ``player_id`` against ``opponent_id``."""
    if player_id == opponent_id:
        raise ValueError(f"player_id={player_id} cannot be compared with itself")

    h2h_matches = head_to_head_matches(player_id, opponent_id, matches)
    stats = PlayerStats()
    for match in h2h_matches:
        own, opponent = match.scores_for(player_id)
        stats = stats.add(match.outcome_for(player_id), own, opponent)

    newest_first = list(reversed(h2h_matches))
    outcomes = [match.outcome_for(player_id) for match in newest_first]
    current_streak, longest_streak = compute_streaks(outcomes)

    recent_results = []
    for match in newest_first[:recent_limit]:
        own, opponent = match.scores_for(player_id)
        recent_results.append(
            RecentResult(
                match_id=match.match_id,
                event_time=match.event_time,
                outcome=match.outcome_for(player_id),
                own_score=own,
                opponent_score=opponent,
            )
        )

    return HeadToHead(
        player_id=player_id,
        opponent_id=opponent_id,
        games_played=stats.games_played,
        wins=stats.wins,
        losses=stats.losses,
        draws=stats.draws,
        points_for=stats.points_for,
        points_against=stats.points_against,
        current_streak=current_streak,
        longest_streak=longest_streak,
        recent_results=tuple(recent_results),
    )


def biggest_rivals(
    player_id: str,
    matches: Iterable[MatchRecord],
    *,
    min_games: int = 2,
    limit: int | None = 5,
) -> list[HeadToHead]:
    """Opponents with at least ``min_games`` meetings, worst win rate first."""
    match_list = list(matches)
    opponent_ids = sorted(
        {
            opponent_id
            for match in match_list
            for opponent_id in match.opponents_of(player_id)
        }
    )

    rivals = []
    for opponent_id in opponent_ids:
        record = compute_head_to_head(player_id, opponent_id, match_list)
        if record.games_played >= min_games:
            rivals.append(record)

    rivals.sort(key=lambda record: (record.win_rate, -record.games_played, record.opponent_id))
    if limit is None:
        return rivals
    return rivals[:limit]


__all__ = [
    "HeadToHead",
    "NO_STREAK",
    "RecentResult",
    "Streak",
    "biggest_rivals",
    "compute_head_to_head",
    "compute_player_stats",
    "compute_streaks",
    "head_to_head_matches",
]
