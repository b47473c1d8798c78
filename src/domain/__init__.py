"""Rating and statistics domain modules."""

from domain.ratings.common import GameType, MatchRecord, Outcome, RatingChange

__all__ = ["GameType", "MatchRecord", "Outcome", "RatingChange"]
