"""Sync and live-scoring pipelines over the persisted game ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.ratings.common import MatchRecord, Outcome
from domain.ratings.elo.calculator import MatchRatingUpdate, RatingParameters, update_match_ratings
from domain.ratings.elo.config import RatingSystemConfig
from domain.ratings.errors import InvalidMatchError, MissingPlayerError, OutOfOrderMatchError, RatingEngineError
from domain.reconciliation import PlayerReconciliation, reconcile_history, reconcile_player
from models import Game, GameParticipant, Player
from repositories.base import mark_system_synced, upsert_system
from repositories.games import fetch_match_records, insert_game, replace_rating_changes
from repositories.players import apply_reconciliation, fetch_players

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerSyncFailure:
    player_id: str
    reason: str


@dataclass(frozen=True)
class SyncSummary:
    """Outcome of one sync run."""

    system_name: str
    config_file: str
    mode: str
    processed_matches: int
    rating_changes_written: int
    players_processed: int
    players_updated: int
    players_unchanged: int
    failures: tuple[PlayerSyncFailure, ...] = field(default=())
    dry_run: bool = False

    @property
    def players_failed(self) -> int:
        return len(self.failures)

    @property
    def players_succeeded(self) -> int:
        return self.players_updated + self.players_unchanged


def _needs_update(session: Session, result: PlayerReconciliation) -> bool:
    player = session.get(Player, result.player_id)
    if player is None:
        return True
    return (
        player.rating != result.final_rating
        or player.wins != result.stats.wins
        or player.losses != result.stats.losses
        or player.draws != result.stats.draws
        or player.points_for != result.stats.points_for
        or player.points_against != result.stats.points_against
    )


def _persist_players(
    session: Session,
    results: list[PlayerReconciliation],
    failures: list[PlayerSyncFailure],
) -> tuple[int, int]:
    """Write each player inside its own savepoint; return (updated, unchanged)."""
    updated = 0
    unchanged = 0
    for result in results:
        try:
            with session.begin_nested():
                changed = apply_reconciliation(session, result)
        except (LookupError, SQLAlchemyError) as exc:
            logger.warning("failed to persist player_id=%s: %s", result.player_id, exc)
            failures.append(PlayerSyncFailure(player_id=result.player_id, reason=str(exc)))
            continue
        if changed:
            updated += 1
        else:
            unchanged += 1
    return updated, unchanged


def sync_all_players(
    *,
    session_factory,
    system_config: RatingSystemConfig,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
) -> SyncSummary:
    """Full backfill: replay every stored game and refresh all cached player fields.

    The replay completes before anything is written, so an invalid game aborts
    the run with the database untouched. Per-game rating changes are rewritten
    from the replay, then each player's cached rating and record are updated
    independently; per-player write failures are counted, not fatal.
    """
    params = system_config.parameters

    with session_factory() as session:
        matches = fetch_match_records(session)
        players = fetch_players(session)
        baselines = {player_id: player.baseline_rating for player_id, player in players.items()}
        logger.info("replaying matches=%d players=%d system=%s", len(matches), len(players), system_config.name)

        result = reconcile_history(matches, baselines, params)
        player_results = list(result.players.values())

        if dry_run:
            pending = sum(1 for player_result in player_results if _needs_update(session, player_result))
            session.rollback()
            summary = SyncSummary(
                system_name=system_config.name,
                config_file=system_config.file_path.name,
                mode="replay",
                processed_matches=len(result.matches),
                rating_changes_written=0,
                players_processed=len(player_results),
                players_updated=pending,
                players_unchanged=len(player_results) - pending,
                dry_run=True,
            )
            if echo is not None:
                echo(
                    f"[dry-run] config={summary.config_file} "
                    f"system={summary.system_name} "
                    f"processed_matches={summary.processed_matches} "
                    f"players_pending_update={pending}"
                )
            return summary

        failures: list[PlayerSyncFailure] = []
        try:
            system = upsert_system(
                session,
                name=system_config.name,
                description=system_config.description,
                config_json=system_config.as_config_json(),
            )
            written = replace_rating_changes(session, list(result.matches))
            updated, unchanged = _persist_players(session, player_results, failures)
            mark_system_synced(session, system)
            session.commit()
        except Exception:
            session.rollback()
            raise

    summary = SyncSummary(
        system_name=system_config.name,
        config_file=system_config.file_path.name,
        mode="replay",
        processed_matches=len(result.matches),
        rating_changes_written=written,
        players_processed=len(player_results),
        players_updated=updated,
        players_unchanged=unchanged,
        failures=tuple(failures),
    )
    logger.info(
        "sync completed system=%s updated=%d unchanged=%d failed=%d",
        summary.system_name,
        summary.players_updated,
        summary.players_unchanged,
        summary.players_failed,
    )
    if echo is not None:
        echo(
            "completed "
            f"config={summary.config_file} "
            f"system={summary.system_name} "
            f"processed_matches={summary.processed_matches} "
            f"rating_changes_written={summary.rating_changes_written} "
            f"players_updated={summary.players_updated} "
            f"players_unchanged={summary.players_unchanged} "
            f"players_failed={summary.players_failed}"
        )
    return summary


def sync_from_recorded_history(
    *,
    session_factory,
    system_config: RatingSystemConfig,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
) -> SyncSummary:
    """Refresh each player independently from the rating changes stored on their games.

    Every player is folded over their own games only, taking opponents'
    pre-match ratings from the stored rating changes. A player whose history
    cannot be folded (for example a game without stored rating changes) is
    reported as failed and left untouched; other players still sync.
    """
    params = system_config.parameters
    failures: list[PlayerSyncFailure] = []

    with session_factory() as session:
        matches = fetch_match_records(session)
        players = fetch_players(session)

        player_results: list[PlayerReconciliation] = []
        for player_id, player in players.items():
            try:
                player_results.append(reconcile_player(player_id, player.baseline_rating, matches, params))
            except RatingEngineError as exc:
                logger.warning("cannot fold history for player_id=%s: %s", player_id, exc)
                failures.append(PlayerSyncFailure(player_id=player_id, reason=str(exc)))

        if dry_run:
            pending = sum(1 for player_result in player_results if _needs_update(session, player_result))
            session.rollback()
            updated, unchanged = pending, len(player_results) - pending
        else:
            try:
                updated, unchanged = _persist_players(session, player_results, failures)
                session.commit()
            except Exception:
                session.rollback()
                raise

    summary = SyncSummary(
        system_name=system_config.name,
        config_file=system_config.file_path.name,
        mode="recorded",
        processed_matches=len(matches),
        rating_changes_written=0,
        players_processed=len(players),
        players_updated=updated,
        players_unchanged=unchanged,
        failures=tuple(failures),
        dry_run=dry_run,
    )
    if echo is not None:
        prefix = "[dry-run] " if dry_run else "completed "
        echo(
            f"{prefix}config={summary.config_file} "
            f"system={summary.system_name} "
            f"mode={summary.mode} "
            f"players_updated={summary.players_updated} "
            f"players_unchanged={summary.players_unchanged} "
            f"players_failed={summary.players_failed}"
        )
    return summary


def _latest_game_key(session: Session, player_ids: tuple[str, ...]):
    statement = (
        select(Game.event_time, Game.id)
        .join(GameParticipant, GameParticipant.game_id == Game.id)
        .where(GameParticipant.player_id.in_(player_ids))
        .order_by(Game.event_time.desc(), Game.id.desc())
        .limit(1)
    )
    row = session.execute(statement).first()
    return None if row is None else (row[0], row[1])


def record_match(
    session: Session,
    match: MatchRecord,
    params: RatingParameters | None = None,
) -> MatchRatingUpdate:
    """Live scoring: rate a new match from cached ratings and store it.

    The match must be newer than every stored game of its participants,
    otherwise applying it on top of the cached ratings would diverge from a
    full replay; such matches raise :class:`OutOfOrderMatchError`. The caller
    owns the transaction and must serialize writes per player.
    """
    params = params or RatingParameters()
    players = fetch_players(session, match.player_ids)
    for player_id in match.player_ids:
        if player_id not in players:
            raise MissingPlayerError(player_id, match_id=match.match_id)

    if session.get(Game, match.match_id) is not None:
        raise InvalidMatchError("match id is already stored", match_id=match.match_id)

    latest = _latest_game_key(session, match.player_ids)
    if latest is not None and match.sort_key < latest:
        raise OutOfOrderMatchError(match.match_id, latest[1])

    ratings = {player_id: player.rating for player_id, player in players.items()}
    update = update_match_ratings(match, ratings, params)
    insert_game(session, replace(match, rating_changes=update.changes))

    for change in update.changes:
        player = session.get(Player, change.player_id)
        own, opponent = match.scores_for(change.player_id)
        outcome = match.outcome_for(change.player_id)
        player.rating = change.after
        player.wins += 1 if outcome is Outcome.WIN else 0
        player.losses += 1 if outcome is Outcome.LOSS else 0
        player.draws += 1 if outcome is Outcome.DRAW else 0
        player.points_for += own
        player.points_against += opponent
    session.flush()

    logger.debug("recorded match_id=%s participants=%s", match.match_id, ",".join(match.player_ids))
    return update


__all__ = [
    "PlayerSyncFailure",
    "SyncSummary",
    "record_match",
    "sync_all_players",
    "sync_from_recorded_history",
]
