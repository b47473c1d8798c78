"""Unit tests for the match-level rating update."""

from __future__ import annotations

from datetime import datetime

import pytest

from domain.ratings.common import GameType, MatchRecord
from domain.ratings.elo.calculator import (
    RatingCalculator,
    RatingParameters,
    calculate_expected_score,
    performance_multiplier,
    score_margin_multiplier,
    update_match_ratings,
    update_ratings,
)
from domain.ratings.errors import InvalidMatchError, MissingPlayerError


def _match(
    match_id: str,
    team1: tuple[str, ...],
    team2: tuple[str, ...],
    team1_score: int,
    team2_score: int,
) -> MatchRecord:
    return MatchRecord(
        match_id=match_id,
        event_time=datetime(2026, 1, 1, 12, 0, 0),
        game_type=GameType.SINGLES if len(team1) == 1 else GameType.DOUBLES,
        team1_player_ids=team1,
        team2_player_ids=team2,
        team1_score=team1_score,
        team2_score=team2_score,
    )


def test_rating_parameters_defaults_are_expected_constants() -> None:
    params = RatingParameters()
    assert params.initial_rating == pytest.approx(3.5)
    assert params.min_rating == pytest.approx(2.0)
    assert params.max_rating == pytest.approx(8.0)
    assert params.k_factor == pytest.approx(0.16)
    assert params.scale_factor == pytest.approx(2.0)
    assert params.margin_of_victory is True
    assert params.performance_weight == pytest.approx(0.0)


def test_expected_score_equal_ratings_is_half() -> None:
    assert calculate_expected_score(3.5, 3.5, 2.0) == pytest.approx(0.5)


def test_expected_scores_sum_to_one() -> None:
    expected_a = calculate_expected_score(4.2, 3.1, 2.0)
    expected_b = calculate_expected_score(3.1, 4.2, 2.0)
    assert expected_a + expected_b == pytest.approx(1.0)


def test_two_point_gap_is_ten_to_one_odds() -> None:
    assert calculate_expected_score(5.0, 3.0, 2.0) == pytest.approx(10.0 / 11.0)


def test_margin_multiplier_grows_with_point_differential() -> None:
    params = RatingParameters()
    assert score_margin_multiplier(11, 9, params) == pytest.approx(0.775)
    assert score_margin_multiplier(11, 2, params) == pytest.approx(1.3)
    assert score_margin_multiplier(21, 0, params) == pytest.approx(1.5)
    assert score_margin_multiplier(10, 10, params) == pytest.approx(0.625)


def test_margin_multiplier_disabled_is_one() -> None:
    params = RatingParameters(margin_of_victory=False)
    assert score_margin_multiplier(11, 0, params) == pytest.approx(1.0)


def test_singles_upset_moves_ratings_by_expected_amount() -> None:
    update = update_ratings({"alice": 4.0}, {"bob": 3.0}, 2, 11, match_id="m1")
    changes = update.as_mapping()

    expected_alice = 1.0 / (1.0 + 10.0 ** (-0.5))
    delta = 0.16 * (0.0 - expected_alice) * 1.3
    assert update.team1_expected == pytest.approx(expected_alice)
    assert changes["alice"].after == pytest.approx(4.0 + delta)
    assert changes["bob"].after == pytest.approx(3.0 - delta)
    assert changes["alice"].match_id == "m1"
    assert changes["alice"].before == pytest.approx(4.0)


def test_blowout_moves_more_than_close_game() -> None:
    blowout = update_ratings({"alice": 4.0}, {"bob": 3.0}, 2, 11).as_mapping()
    close = update_ratings({"alice": 4.0}, {"bob": 3.0}, 9, 11).as_mapping()
    assert abs(blowout["alice"].delta) > abs(close["alice"].delta)
    assert close["alice"].delta < 0.0
    assert close["bob"].delta > 0.0


def test_update_is_zero_sum_with_default_parameters() -> None:
    update = update_ratings(
        {"alice": 4.1, "bob": 3.2},
        {"cara": 3.9, "dan": 3.6},
        11,
        7,
        game_type=GameType.DOUBLES,
    )
    assert sum(change.delta for change in update.changes) == pytest.approx(0.0)
    assert len(update.changes) == 4


def test_doubles_uses_team_average_and_shares_delta() -> None:
    update = update_ratings({"alice": 4.0, "bob": 3.0}, {"cara": 3.5, "dan": 3.5}, 11, 5)
    changes = update.as_mapping()

    assert update.team1_rating == pytest.approx(3.5)
    assert update.team1_expected == pytest.approx(0.5)
    delta = 0.16 * 0.5 * (0.7 + 5 * 0.075)
    assert changes["alice"].delta == pytest.approx(delta)
    assert changes["bob"].delta == pytest.approx(delta)
    assert changes["cara"].delta == pytest.approx(-delta)
    assert changes["dan"].delta == pytest.approx(-delta)


def test_draw_between_equal_teams_changes_nothing() -> None:
    update = update_ratings({"alice": 4.0, "bob": 3.0}, {"cara": 3.5, "dan": 3.5}, 10, 10)
    assert update.team1_actual == pytest.approx(0.5)
    for change in update.changes:
        assert change.delta == pytest.approx(0.0)


def test_draw_favours_the_weaker_side() -> None:
    changes = update_ratings({"alice": 4.5}, {"bob": 3.5}, 10, 10).as_mapping()
    assert changes["alice"].delta < 0.0
    assert changes["bob"].delta > 0.0


def test_ratings_are_clamped_to_bounds() -> None:
    top = update_ratings({"alice": 7.95}, {"bob": 7.95}, 11, 0).as_mapping()
    assert top["alice"].after == pytest.approx(8.0)
    assert top["bob"].after == pytest.approx(7.95 - 0.16 * 0.5 * 1.45)

    bottom = update_ratings({"cara": 2.05}, {"dan": 2.05}, 0, 11).as_mapping()
    assert bottom["cara"].after == pytest.approx(2.0)


def test_performance_weighting_rewards_weaker_partner_on_win() -> None:
    params = RatingParameters(performance_weight=0.15)
    changes = update_ratings(
        {"alice": 4.5, "bob": 3.0},
        {"cara": 3.75, "dan": 3.75},
        11,
        6,
        params,
    ).as_mapping()
    assert changes["bob"].delta > changes["alice"].delta > 0.0


def test_performance_multiplier_is_neutral_for_singles_and_draws() -> None:
    params = RatingParameters(performance_weight=0.15)
    assert performance_multiplier(
        player_rating=5.0, opposing_team_rating=3.0, actual_score=1.0, team_size=1, params=params
    ) == pytest.approx(1.0)
    assert performance_multiplier(
        player_rating=5.0, opposing_team_rating=3.0, actual_score=0.5, team_size=2, params=params
    ) == pytest.approx(1.0)


def test_team_size_mismatch_raises() -> None:
    with pytest.raises(InvalidMatchError, match="team sizes differ"):
        update_ratings({"alice": 3.5, "bob": 3.5}, {"cara": 3.5}, 11, 5)


def test_empty_team_raises() -> None:
    with pytest.raises(InvalidMatchError, match="at least one player"):
        update_ratings({}, {"cara": 3.5}, 11, 5)


def test_oversized_team_raises() -> None:
    with pytest.raises(InvalidMatchError, match="1 or 2 players"):
        update_ratings({"a": 3.5, "b": 3.5, "c": 3.5}, {"d": 3.5, "e": 3.5, "f": 3.5}, 11, 5)


def test_negative_score_raises() -> None:
    with pytest.raises(InvalidMatchError, match="cannot be negative"):
        update_ratings({"alice": 3.5}, {"bob": 3.5}, -1, 11)


def test_non_integer_score_raises() -> None:
    with pytest.raises(InvalidMatchError, match="must be an integer"):
        update_ratings({"alice": 3.5}, {"bob": 3.5}, 11.5, 3)
    with pytest.raises(InvalidMatchError, match="must be an integer"):
        update_ratings({"alice": 3.5}, {"bob": 3.5}, True, 3)


def test_game_type_must_match_roster_size() -> None:
    with pytest.raises(InvalidMatchError, match="singles requires 1"):
        update_ratings(
            {"alice": 3.5, "bob": 3.5},
            {"cara": 3.5, "dan": 3.5},
            11,
            3,
            game_type=GameType.SINGLES,
        )


def test_player_on_both_teams_raises() -> None:
    with pytest.raises(InvalidMatchError, match="more than once"):
        update_match_ratings(
            _match("m1", ("alice", "bob"), ("alice", "cara"), 11, 3),
            {"alice": 3.5, "bob": 3.5, "cara": 3.5},
        )


def test_player_twice_on_same_team_raises() -> None:
    with pytest.raises(InvalidMatchError, match="more than once"):
        update_match_ratings(
            _match("m1", ("alice", "alice"), ("bob", "cara"), 11, 3),
            {"alice": 3.5, "bob": 3.5, "cara": 3.5},
        )


def test_missing_rating_raises_missing_player_error() -> None:
    with pytest.raises(MissingPlayerError) as exc_info:
        update_match_ratings(_match("m7", ("alice",), ("bob",), 11, 3), {"alice": 3.5})
    assert exc_info.value.player_id == "bob"
    assert exc_info.value.match_id == "m7"


def test_non_finite_rating_raises() -> None:
    with pytest.raises(InvalidMatchError, match="not finite"):
        update_ratings({"alice": float("nan")}, {"bob": 3.5}, 11, 3)


def test_calculator_carries_ratings_between_matches() -> None:
    calculator = RatingCalculator(RatingParameters(), ratings={"alice": 3.5, "bob": 3.5, "cara": 3.5})
    first = calculator.process_match(_match("m1", ("alice",), ("bob",), 11, 4))
    second = calculator.process_match(_match("m2", ("alice",), ("cara",), 11, 4))

    assert second.as_mapping()["alice"].before == pytest.approx(first.as_mapping()["alice"].after)
    assert calculator.get_rating("bob") == pytest.approx(first.as_mapping()["bob"].after)
    assert calculator.tracked_player_count() == 3
    assert calculator.ratings()["alice"] == pytest.approx(second.as_mapping()["alice"].after)


def test_calculator_rejects_unknown_players() -> None:
    calculator = RatingCalculator(RatingParameters(), ratings={"alice": 3.5})
    with pytest.raises(MissingPlayerError):
        calculator.process_match(_match("m1", ("alice",), ("bob",), 11, 4))
    assert not calculator.has_player("bob")


def test_doubles_draw_between_equal_averages_is_balanced() -> None:
    update = update_ratings({"alice": 3.5, "bob": 4.5}, {"cara": 4.0, "dan": 4.0}, 9, 9)
    assert update.team1_rating == pytest.approx(4.0)
    assert update.team1_expected == pytest.approx(0.5)
    assert update.team2_expected == pytest.approx(0.5)
    assert all(change.delta == pytest.approx(0.0) for change in update.changes)
