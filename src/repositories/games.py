"""Load and store games as engine match records."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from domain.ratings.common import GameType, MatchRecord, RatingChange
from models import Game, GameParticipant, GameRatingChange


def game_to_match_record(game: Game) -> MatchRecord:
    """Translate an ORM game (with roster and rating changes loaded) into a match record."""
    participants = sorted(game.participants, key=lambda row: (row.team, row.slot))
    team1 = tuple(row.player_id for row in participants if row.team == 1)
    team2 = tuple(row.player_id for row in participants if row.team == 2)
    changes = tuple(
        RatingChange(
            player_id=row.player_id,
            match_id=game.id,
            before=row.rating_before,
            after=row.rating_after,
        )
        for row in sorted(game.rating_changes, key=lambda row: row.player_id)
    )
    return MatchRecord(
        match_id=game.id,
        event_time=game.event_time,
        game_type=GameType(game.game_type),
        team1_player_ids=team1,
        team2_player_ids=team2,
        team1_score=game.team1_score,
        team2_score=game.team2_score,
        tournament_id=game.tournament_id,
        quick_play=game.quick_play,
        rating_changes=changes,
    )


def fetch_match_records(
    session: Session,
    *,
    player_id: str | None = None,
    tournament_id: str | None = None,
) -> list[MatchRecord]:
    """Fetch finalized games, oldest first, optionally scoped to a player or tournament."""
    statement = (
        select(Game)
        .options(selectinload(Game.participants), selectinload(Game.rating_changes))
        .order_by(Game.event_time, Game.id)
    )
    if player_id is not None:
        statement = statement.where(
            Game.id.in_(select(GameParticipant.game_id).where(GameParticipant.player_id == player_id))
        )
    if tournament_id is not None:
        statement = statement.where(Game.tournament_id == tournament_id)

    games = session.execute(statement).scalars().all()
    return [game_to_match_record(game) for game in games]


def insert_game(session: Session, match: MatchRecord) -> Game:
    """Persist a match record with its roster and any recorded rating changes."""
    game = Game(
        id=match.match_id,
        event_time=match.event_time,
        game_type=match.game_type.value,
        team1_score=match.team1_score,
        team2_score=match.team2_score,
        tournament_id=match.tournament_id,
        quick_play=match.quick_play,
    )
    for team, player_ids in ((1, match.team1_player_ids), (2, match.team2_player_ids)):
        for slot, player_id in enumerate(player_ids, start=1):
            game.participants.append(GameParticipant(player_id=player_id, team=team, slot=slot))
    for change in match.rating_changes:
        game.rating_changes.append(
            GameRatingChange(
                player_id=change.player_id,
                rating_before=change.before,
                rating_after=change.after,
            )
        )
    session.add(game)
    session.flush()
    return game


def replace_rating_changes(session: Session, matches: Sequence[MatchRecord]) -> int:
    """Overwrite stored per-game rating changes with the given reconciled ones."""
    if not matches:
        return 0

    session.execute(
        delete(GameRatingChange).where(GameRatingChange.game_id.in_([match.match_id for match in matches]))
    )
    rows = [
        {
            "game_id": match.match_id,
            "player_id": change.player_id,
            "rating_before": change.before,
            "rating_after": change.after,
        }
        for match in matches
        for change in match.rating_changes
    ]
    if rows:
        session.execute(GameRatingChange.__table__.insert(), rows)
    session.flush()
    session.expire_all()
    return len(rows)


__all__ = [
    "fetch_match_records",
    "game_to_match_record",
    "insert_game",
    "replace_rating_changes",
]
