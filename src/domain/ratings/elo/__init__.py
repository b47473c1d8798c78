"""Elo-style rating update modules."""

from domain.ratings.elo.calculator import (
    MatchRatingUpdate,
    RatingCalculator,
    RatingParameters,
    calculate_expected_score,
    score_margin_multiplier,
    update_match_ratings,
    update_ratings,
)
from domain.ratings.elo.config import (
    RatingSystemConfig,
    load_rating_system_config,
    load_rating_system_configs,
)

__all__ = [
    "MatchRatingUpdate",
    "RatingCalculator",
    "RatingParameters",
    "RatingSystemConfig",
    "calculate_expected_score",
    "load_rating_system_config",
    "load_rating_system_configs",
    "score_margin_multiplier",
    "update_match_ratings",
    "update_ratings",
]
