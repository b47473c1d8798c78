"""Rating-engine domain modules."""

from domain.ratings.common import (
    GameType,
    MatchRecord,
    Outcome,
    PlayerSnapshot,
    PlayerStats,
    RatingChange,
    RatingHistoryPoint,
    matches_for_player,
    sort_matches,
)
from domain.ratings.errors import (
    InvalidMatchError,
    MissingPlayerError,
    OutOfOrderMatchError,
    RatingEngineError,
)

__all__ = [
    "GameType",
    "InvalidMatchError",
    "MatchRecord",
    "MissingPlayerError",
    "OutOfOrderMatchError",
    "Outcome",
    "PlayerSnapshot",
    "PlayerStats",
    "RatingChange",
    "RatingEngineError",
    "RatingHistoryPoint",
    "matches_for_player",
    "sort_matches",
]
