"""Match-level rating update on the 2.0-8.0 skill scale."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from math import isfinite

from domain.ratings.common import GameType, MatchRecord, RatingChange
from domain.ratings.errors import InvalidMatchError, MissingPlayerError


@dataclass(frozen=True)
class RatingParameters:
    initial_rating: float = 3.5
    min_rating: float = 2.0
    max_rating: float = 8.0
    k_factor: float = 0.16
    scale_factor: float = 2.0
    margin_of_victory: bool = True
    margin_base: float = 0.7
    margin_step: float = 0.075
    margin_min: float = 0.5
    margin_max: float = 1.5
    performance_weight: float = 0.0
    performance_min: float = 0.7
    performance_max: float = 1.3


@dataclass(frozen=True)
class MatchRatingUpdate:
    """Complete rating result for one match: one change per declared participant."""

    match_id: str | None
    team1_rating: float
    team2_rating: float
    team1_expected: float
    team2_expected: float
    team1_actual: float
    team2_actual: float
    margin_multiplier: float
    changes: tuple[RatingChange, ...]

    def as_mapping(self) -> dict[str, RatingChange]:
        return {change.player_id: change for change in self.changes}

    def after_ratings(self) -> dict[str, float]:
        return {change.player_id: change.after for change in self.changes}


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float) -> float:
    """Compute the logistic expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


def clamp_rating(rating: float, params: RatingParameters) -> float:
    return max(params.min_rating, min(params.max_rating, rating))


def score_margin_multiplier(team1_score: int, team2_score: int, params: RatingParameters) -> float:
    """Scale rating movement by point differential: narrow games move less than blowouts."""
    if not params.margin_of_victory:
        return 1.0
    margin = abs(team1_score - team2_score)
    multiplier = params.margin_base + ((margin - 1) * params.margin_step)
    return max(params.margin_min, min(params.margin_max, multiplier))


def performance_multiplier(
    *,
    player_rating: float,
    opposing_team_rating: float,
    actual_score: float,
    team_size: int,
    params: RatingParameters,
) -> float:
    """Individual doubles weighting; weaker partners gain more on wins and lose less on losses."""
    if params.performance_weight == 0.0 or team_size < 2 or actual_score == 0.5:
        return 1.0

    rating_difference = player_rating - opposing_team_rating
    if actual_score == 1.0:
        multiplier = 1.0 - (rating_difference * params.performance_weight)
    else:
        multiplier = 1.0 + (rating_difference * params.performance_weight)
    return max(params.performance_min, min(params.performance_max, multiplier))


def _validate_score(score: object, label: str, match_id: str | None) -> None:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidMatchError(f"{label} must be an integer, got {score!r}", match_id=match_id)
    if score < 0:
        raise InvalidMatchError(f"{label} cannot be negative, got {score}", match_id=match_id)


def _validate_teams(
    team1_player_ids: tuple[str, ...],
    team2_player_ids: tuple[str, ...],
    *,
    game_type: GameType | None,
    match_id: str | None,
) -> None:
    if not team1_player_ids or not team2_player_ids:
        raise InvalidMatchError("both teams need at least one player", match_id=match_id)
    if len(team1_player_ids) != len(team2_player_ids):
        raise InvalidMatchError(
            f"team sizes differ ({len(team1_player_ids)} vs {len(team2_player_ids)})",
            match_id=match_id,
        )
    if len(team1_player_ids) > 2:
        raise InvalidMatchError(
            f"teams hold 1 or 2 players, got {len(team1_player_ids)}",
            match_id=match_id,
        )
    if game_type is not None and len(team1_player_ids) != game_type.team_size:
        raise InvalidMatchError(
            f"{game_type.value} requires {game_type.team_size} player(s) per team, "
            f"got {len(team1_player_ids)}",
            match_id=match_id,
        )

    all_ids = team1_player_ids + team2_player_ids
    if len(set(all_ids)) != len(all_ids):
        raise InvalidMatchError(f"a player appears more than once in {list(all_ids)}", match_id=match_id)


def _team_rating(
    player_ids: tuple[str, ...],
    ratings: Mapping[str, float],
    match_id: str | None,
) -> dict[str, float]:
    pre_ratings: dict[str, float] = {}
    for player_id in player_ids:
        if player_id not in ratings:
            raise MissingPlayerError(player_id, match_id=match_id)
        rating = float(ratings[player_id])
        if not isfinite(rating):
            raise InvalidMatchError(f"rating for player_id={player_id} is not finite", match_id=match_id)
        pre_ratings[player_id] = rating
    return pre_ratings


def update_ratings(
    team1_ratings: Mapping[str, float],
    team2_ratings: Mapping[str, float],
    team1_score: int,
    team2_score: int,
    params: RatingParameters | None = None,
    *,
    game_type: GameType | None = None,
    match_id: str | None = None,
) -> MatchRatingUpdate:
    """Compute post-match ratings for every participant of one match.

    ``team1_ratings``/``team2_ratings`` map each roster's player ids to their
    pre-match ratings. Team strength is the arithmetic mean of the roster, the
    expectation is logistic, and the surprise ``actual - expected`` is scaled by
    the K-factor and the margin-of-victory multiplier. Both teams receive equal
    and opposite team-level deltas; results are clamped to the rating bounds.
    """
    params = params or RatingParameters()
    team1_ids = tuple(team1_ratings)
    team2_ids = tuple(team2_ratings)
    _validate_teams(team1_ids, team2_ids, game_type=game_type, match_id=match_id)
    _validate_score(team1_score, "team1_score", match_id)
    _validate_score(team2_score, "team2_score", match_id)

    team1_pre = _team_rating(team1_ids, team1_ratings, match_id)
    team2_pre = _team_rating(team2_ids, team2_ratings, match_id)
    team1_rating = sum(team1_pre.values()) / float(len(team1_pre))
    team2_rating = sum(team2_pre.values()) / float(len(team2_pre))

    team1_expected = calculate_expected_score(team1_rating, team2_rating, params.scale_factor)
    team2_expected = 1.0 - team1_expected

    if team1_score > team2_score:
        team1_actual = 1.0
    elif team1_score < team2_score:
        team1_actual = 0.0
    else:
        team1_actual = 0.5
    team2_actual = 1.0 - team1_actual

    margin = score_margin_multiplier(team1_score, team2_score, params)
    team1_delta = params.k_factor * (team1_actual - team1_expected) * margin
    team2_delta = -team1_delta

    changes: list[RatingChange] = []
    sides = (
        (team1_pre, team1_delta, team2_rating, team1_actual),
        (team2_pre, team2_delta, team1_rating, team2_actual),
    )
    for pre_ratings, team_delta, opposing_rating, actual in sides:
        for player_id, pre_rating in pre_ratings.items():
            weight = performance_multiplier(
                player_rating=pre_rating,
                opposing_team_rating=opposing_rating,
                actual_score=actual,
                team_size=len(pre_ratings),
                params=params,
            )
            post_rating = clamp_rating(pre_rating + (team_delta * weight), params)
            changes.append(
                RatingChange(
                    player_id=player_id,
                    match_id="" if match_id is None else match_id,
                    before=pre_rating,
                    after=post_rating,
                )
            )

    return MatchRatingUpdate(
        match_id=match_id,
        team1_rating=team1_rating,
        team2_rating=team2_rating,
        team1_expected=team1_expected,
        team2_expected=team2_expected,
        team1_actual=team1_actual,
        team2_actual=team2_actual,
        margin_multiplier=margin,
        changes=tuple(changes),
    )


def update_match_ratings(
    match: MatchRecord,
    ratings: Mapping[str, float],
    params: RatingParameters | None = None,
) -> MatchRatingUpdate:
    """Apply :func:`update_ratings` to a match record using a rating lookup."""
    if len(set(match.team1_player_ids)) != len(match.team1_player_ids) or len(
        set(match.team2_player_ids)
    ) != len(match.team2_player_ids):
        raise InvalidMatchError("a player appears more than once on a team", match_id=match.match_id)

    team1_ratings = {
        player_id: _lookup(ratings, player_id, match.match_id) for player_id in match.team1_player_ids
    }
    team2_ratings = {
        player_id: _lookup(ratings, player_id, match.match_id) for player_id in match.team2_player_ids
    }
    return update_ratings(
        team1_ratings,
        team2_ratings,
        match.team1_score,
        match.team2_score,
        params,
        game_type=match.game_type,
        match_id=match.match_id,
    )


def _lookup(ratings: Mapping[str, float], player_id: str, match_id: str) -> float:
    try:
        return ratings[player_id]
    except KeyError as exc:
        raise MissingPlayerError(player_id, match_id=match_id) from exc


class RatingCalculator:
    """Stateful match-by-match calculator carrying each player's current rating."""

    def __init__(
        self,
        params: RatingParameters,
        *,
        ratings: Mapping[str, float] | None = None,
    ) -> None:
        self.params = params
        self._ratings: dict[str, float] = dict(ratings or {})

    def get_rating(self, player_id: str) -> float:
        return self._ratings[player_id]

    def has_player(self, player_id: str) -> bool:
        return player_id in self._ratings

    def tracked_player_count(self) -> int:
        return len(self._ratings)

    def ratings(self) -> dict[str, float]:
        """Return a snapshot of current player ratings."""
        return dict(self._ratings)

    def process_match(self, match: MatchRecord) -> MatchRatingUpdate:
        update = update_match_ratings(match, self._ratings, self.params)
        self._ratings.update(update.after_ratings())
        return update
