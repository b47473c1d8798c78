"""ORM models."""

from models.base import Base
from models.game import Game, GameParticipant, GameRatingChange
from models.player import Player
from models.system import RatingSystem

__all__ = [
    "Base",
    "Game",
    "GameParticipant",
    "GameRatingChange",
    "Player",
    "RatingSystem",
]
