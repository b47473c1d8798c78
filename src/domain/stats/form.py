"""Recent-form scoring on a bounded 0-100 scale."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from domain.ratings.common import MatchRecord, Outcome, matches_for_player


class FormTrend(str, Enum):
    UP = "up"
    NEUTRAL = "neutral"
    DOWN = "down"


@dataclass(frozen=True)
class FormParameters:
    window: int = 10
    min_games: int = 3
    decay: float = 0.85
    neutral_score: float = 50.0
    score_scale: float = 25.0
    quality_weight: float = 0.25
    good_form_threshold: float = 65.0
    poor_form_threshold: float = 35.0


@dataclass(frozen=True)
class FormMetric:
    player_id: str
    score: float
    trend: FormTrend
    games_considered: int
    recent_wins: int
    recent_losses: int
    recent_draws: int

    @property
    def display_score(self) -> int:
        return int(round(self.score))


def quality_multiplier(
    player_rating: float,
    opponent_rating: float,
    outcome: Outcome,
    params: FormParameters,
) -> float:
    """Wins over stronger opponents and losses to weaker ones weigh more."""
    rating_difference = opponent_rating - player_rating
    if outcome is Outcome.WIN:
        multiplier = 1.0 + (rating_difference * params.quality_weight)
    else:
        multiplier = 1.0 - (rating_difference * params.quality_weight)
    return max(0.5, min(1.5, multiplier))


def margin_factor(own_score: int, opponent_score: int) -> float:
    return 0.7 + min(abs(own_score - opponent_score) / 10.0, 0.3)


def _opponent_rating_at_match(match: MatchRecord, player_id: str, fallback: float) -> float:
    ratings = []
    for opponent_id in match.opponents_of(player_id):
        change = match.rating_change_for(opponent_id)
        ratings.append(change.before if change is not None else fallback)
    return sum(ratings) / float(len(ratings))


def game_form_points(
    match: MatchRecord,
    player_id: str,
    current_rating: float,
    params: FormParameters,
) -> float:
    """Signed contribution of one match; draws contribute nothing."""
    outcome = match.outcome_for(player_id)
    if outcome is Outcome.DRAW:
        return 0.0
    own, opponent = match.scores_for(player_id)
    base = 1.0 if outcome is Outcome.WIN else -1.0
    opponent_rating = _opponent_rating_at_match(match, player_id, current_rating)
    return base * quality_multiplier(current_rating, opponent_rating, outcome, params) * margin_factor(own, opponent)


def classify_trend(score: float, params: FormParameters) -> FormTrend:
    if score >= params.good_form_threshold:
        return FormTrend.UP
    if score <= params.poor_form_threshold:
        return FormTrend.DOWN
    return FormTrend.NEUTRAL


def compute_form(
    player_id: str,
    matches: Iterable[MatchRecord],
    current_rating: float,
    params: FormParameters | None = None,
) -> FormMetric:
    """Score the player's last ``window`` matches, most recent weighted heaviest.

    Each match scores ``+/-1 * quality * margin`` and the scores are combined as
    an exponentially decayed weighted mean, mapped onto ``neutral +/- scale``
    and clamped to [0, 100]. Fewer than ``min_games`` matches yield the neutral
    score.
    """
    params = params or FormParameters()
    recent = list(reversed(matches_for_player(matches, player_id)))[: params.window]

    outcomes = [match.outcome_for(player_id) for match in recent]
    wins = sum(1 for outcome in outcomes if outcome is Outcome.WIN)
    losses = sum(1 for outcome in outcomes if outcome is Outcome.LOSS)
    draws = len(outcomes) - wins - losses

    if len(recent) < params.min_games:
        score = params.neutral_score
    else:
        weighted_total = 0.0
        weight_sum = 0.0
        for index, match in enumerate(recent):
            weight = params.decay**index
            weighted_total += weight * game_form_points(match, player_id, current_rating, params)
            weight_sum += weight
        weighted_mean = weighted_total / weight_sum
        score = max(0.0, min(100.0, params.neutral_score + (weighted_mean * params.score_scale)))

    return FormMetric(
        player_id=player_id,
        score=score,
        trend=classify_trend(score, params),
        games_considered=len(recent),
        recent_wins=wins,
        recent_losses=losses,
        recent_draws=draws,
    )


__all__ = [
    "FormMetric",
    "FormParameters",
    "FormTrend",
    "classify_trend",
    "compute_form",
    "game_form_points",
    "margin_factor",
    "quality_multiplier",
]
