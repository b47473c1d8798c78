"""Replay match history into rating timelines and aggregate stats.

Reconciliation runs in three phases per player: collect (gather and order the
matches), replay (apply the rating update sequentially) and emit (final rating,
history points and totals). The global replay shares one rating ledger across
all players; :func:`reconcile_player` is an isolated fold over a single
player's matches that reads opponents' pre-match ratings from the rating
changes recorded on each match.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime

from domain.ratings.common import (
    MatchRecord,
    PlayerStats,
    RatingHistoryPoint,
    matches_for_player,
    sort_matches,
)
from domain.ratings.elo.calculator import RatingCalculator, RatingParameters, update_match_ratings
from domain.ratings.errors import InvalidMatchError, MissingPlayerError, OutOfOrderMatchError


@dataclass(frozen=True)
class PlayerReconciliation:
    """Everything a caller persists for one player after a replay."""

    player_id: str
    baseline_rating: float
    final_rating: float
    stats: PlayerStats
    rating_history: tuple[RatingHistoryPoint, ...]

    @property
    def games_played(self) -> int:
        return self.stats.games_played


@dataclass(frozen=True)
class ReconciliationResult:
    """Output of a global replay: per-player results and rating-stamped matches."""

    players: Mapping[str, PlayerReconciliation]
    matches: tuple[MatchRecord, ...]

    @property
    def last_match_key(self) -> tuple[datetime, str] | None:
        if not self.matches:
            return None
        return self.matches[-1].sort_key

    def final_ratings(self) -> dict[str, float]:
        return {player_id: result.final_rating for player_id, result in self.players.items()}

    def baselines(self) -> dict[str, float]:
        return {player_id: result.baseline_rating for player_id, result in self.players.items()}

    def player(self, player_id: str) -> PlayerReconciliation:
        try:
            return self.players[player_id]
        except KeyError as exc:
            raise MissingPlayerError(player_id) from exc


def uniform_baselines(matches: Iterable[MatchRecord], rating: float) -> dict[str, float]:
    """Give every player appearing in ``matches`` the same starting rating."""
    baselines: dict[str, float] = {}
    for match in sort_matches(matches):
        for player_id in match.player_ids:
            baselines.setdefault(player_id, rating)
    return baselines


class HistoryReconciler:
    """Stateful replay over a shared rating ledger."""

    def __init__(
        self,
        params: RatingParameters,
        baselines: Mapping[str, float],
    ) -> None:
        self.params = params
        self._baselines: dict[str, float] = {player_id: float(rating) for player_id, rating in baselines.items()}
        self._calculator = RatingCalculator(params, ratings=self._baselines)
        self._stats: dict[str, PlayerStats] = {player_id: PlayerStats() for player_id in self._baselines}
        self._history: dict[str, list[RatingHistoryPoint]] = {player_id: [] for player_id in self._baselines}
        self._matches: list[MatchRecord] = []
        self._applied_ids: set[str] = set()

    @classmethod
    def from_result(
        cls,
        result: ReconciliationResult,
        params: RatingParameters,
        *,
        extra_baselines: Mapping[str, float] | None = None,
    ) -> HistoryReconciler:
        """Resume from an already reconciled state."""
        baselines = result.baselines()
        for player_id, rating in (extra_baselines or {}).items():
            baselines.setdefault(player_id, rating)

        reconciler = cls(params, baselines)
        reconciler._calculator = RatingCalculator(params, ratings={**baselines, **result.final_ratings()})
        for player_id, player_result in result.players.items():
            reconciler._stats[player_id] = player_result.stats
            reconciler._history[player_id] = list(player_result.rating_history)
        reconciler._matches = list(result.matches)
        reconciler._applied_ids = {match.match_id for match in result.matches}
        return reconciler

    def has_baseline(self, player_id: str) -> bool:
        return player_id in self._baselines

    def process_match(self, match: MatchRecord) -> MatchRecord:
        """Apply one match in order and return it stamped with its rating changes."""
        if match.match_id in self._applied_ids:
            raise InvalidMatchError("match has already been applied", match_id=match.match_id)
        if self._matches and match.sort_key < self._matches[-1].sort_key:
            raise OutOfOrderMatchError(match.match_id, self._matches[-1].match_id)

        update = self._calculator.process_match(match)
        changes = update.as_mapping()

        for player_id in match.player_ids:
            change = changes[player_id]
            own, opponent = match.scores_for(player_id)
            outcome = match.outcome_for(player_id)
            self._stats[player_id] = self._stats[player_id].add(outcome, own, opponent)
            self._history[player_id].append(
                RatingHistoryPoint(
                    player_id=player_id,
                    match_id=match.match_id,
                    event_time=match.event_time,
                    before=change.before,
                    after=change.after,
                    outcome=outcome,
                    opponent_ids=match.opponents_of(player_id),
                )
            )

        stamped = replace(match, rating_changes=update.changes)
        self._matches.append(stamped)
        self._applied_ids.add(match.match_id)
        return stamped

    def result(self) -> ReconciliationResult:
        players = {
            player_id: PlayerReconciliation(
                player_id=player_id,
                baseline_rating=baseline,
                final_rating=self._calculator.get_rating(player_id),
                stats=self._stats[player_id],
                rating_history=tuple(self._history[player_id]),
            )
            for player_id, baseline in sorted(self._baselines.items())
        }
        return ReconciliationResult(players=players, matches=tuple(self._matches))


def _require_baselines(matches: list[MatchRecord], baselines: Mapping[str, float]) -> None:
    for match in matches:
        for player_id in match.player_ids:
            if player_id not in baselines:
                raise MissingPlayerError(player_id, match_id=match.match_id)


def reconcile_history(
    matches: Iterable[MatchRecord],
    baselines: Mapping[str, float],
    params: RatingParameters | None = None,
) -> ReconciliationResult:
    """Full backfill: replay every match from each player's baseline.

    Input order does not matter; matches are sorted by timestamp with the match
    id as tie-breaker. Every participant must have a baseline and match ids must
    be unique.
    """
    params = params or RatingParameters()
    ordered = sort_matches(matches)
    _require_baselines(ordered, baselines)

    reconciler = HistoryReconciler(params, baselines)
    for match in ordered:
        reconciler.process_match(match)
    return reconciler.result()


def extend_history(
    result: ReconciliationResult,
    match: MatchRecord,
    params: RatingParameters | None = None,
    *,
    baselines: Mapping[str, float] | None = None,
) -> ReconciliationResult:
    """Append one new match to a reconciled state.

    ``baselines`` supplies starting ratings for first-time players. The match
    must not sort before the last applied match.
    """
    params = params or RatingParameters()
    reconciler = HistoryReconciler.from_result(result, params, extra_baselines=baselines)
    for player_id in match.player_ids:
        if not reconciler.has_baseline(player_id):
            raise MissingPlayerError(player_id, match_id=match.match_id)
    reconciler.process_match(match)
    return reconciler.result()


def reconcile_player(
    player_id: str,
    baseline_rating: float,
    matches: Iterable[MatchRecord],
    params: RatingParameters | None = None,
) -> PlayerReconciliation:
    """Isolated fold over one player's matches.

    The player's own rating is carried forward from ``baseline_rating``; every
    other participant's pre-match rating comes from the rating change recorded
    on the match, so no other player's history is replayed.
    """
    params = params or RatingParameters()
    rating = float(baseline_rating)
    stats = PlayerStats()
    history: list[RatingHistoryPoint] = []

    for match in matches_for_player(matches, player_id):
        ratings = {player_id: rating}
        for other_id in match.player_ids:
            if other_id == player_id:
                continue
            recorded = match.rating_change_for(other_id)
            if recorded is None:
                raise MissingPlayerError(other_id, match_id=match.match_id)
            ratings[other_id] = recorded.before

        change = update_match_ratings(match, ratings, params).as_mapping()[player_id]
        own, opponent = match.scores_for(player_id)
        outcome = match.outcome_for(player_id)
        stats = stats.add(outcome, own, opponent)
        history.append(
            RatingHistoryPoint(
                player_id=player_id,
                match_id=match.match_id,
                event_time=match.event_time,
                before=change.before,
                after=change.after,
                outcome=outcome,
                opponent_ids=match.opponents_of(player_id),
            )
        )
        rating = change.after

    return PlayerReconciliation(
        player_id=player_id,
        baseline_rating=float(baseline_rating),
        final_rating=rating,
        stats=stats,
        rating_history=tuple(history),
    )


__all__ = [
    "HistoryReconciler",
    "PlayerReconciliation",
    "ReconciliationResult",
    "extend_history",
    "reconcile_history",
    "reconcile_player",
    "uniform_baselines",
]
