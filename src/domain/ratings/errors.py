"""Failures raised by the rating engine."""

from __future__ import annotations


class RatingEngineError(ValueError):
    """Base class for engine input errors."""


class InvalidMatchError(RatingEngineError):
    """Malformed match: roster, size, score or game type problems."""

    def __init__(self, message: str, *, match_id: str | None = None) -> None:
        self.match_id = match_id
        prefix = f"match_id={match_id}: " if match_id is not None else ""
        super().__init__(f"{prefix}{message}")


class MissingPlayerError(RatingEngineError):
    """A match references a player whose rating was not supplied."""

    def __init__(self, player_id: str, *, match_id: str | None = None) -> None:
        self.player_id = player_id
        self.match_id = match_id
        location = f" in match_id={match_id}" if match_id is not None else ""
        super().__init__(f"no rating supplied for player_id={player_id}{location}")


class OutOfOrderMatchError(RatingEngineError):
    """Incremental extension received a match older than the applied history."""

    def __init__(self, match_id: str, last_match_id: str) -> None:
        self.match_id = match_id
        self.last_match_id = last_match_id
        super().__init__(
            f"match_id={match_id} sorts before already applied match_id={last_match_id}; "
            "run a full reconciliation instead"
        )


__all__ = [
    "InvalidMatchError",
    "MissingPlayerError",
    "OutOfOrderMatchError",
    "RatingEngineError",
]
