"""Persistence tests: sync pipelines and live scoring against in-memory SQLite."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

import domain.pipeline as pipeline
from db import create_db_engine, create_session_factory
from domain.pipeline import record_match, sync_all_players, sync_from_recorded_history
from domain.ratings.common import GameType, MatchRecord
from domain.ratings.elo.calculator import RatingParameters
from domain.ratings.elo.config import RatingSystemConfig
from domain.ratings.errors import InvalidMatchError, MissingPlayerError, OutOfOrderMatchError
from domain.reconciliation import reconcile_history
from domain.stats.form import FormParameters
from models import GameRatingChange, Player, RatingSystem
from repositories import create_player, ensure_schema, fetch_match_records, fetch_players, insert_game

BASE_TIME = datetime(2026, 8, 1, 18, 0, 0)
BASELINES = {"alice": 4.0, "bob": 3.5, "cara": 3.2, "dan": 3.8, "erin": 3.0}


def _system_config() -> RatingSystemConfig:
    return RatingSystemConfig(
        name="pickleball_test",
        description="test system",
        file_path=Path("test.toml"),
        parameters=RatingParameters(),
        form=FormParameters(),
    )


def _match(
    match_id: str,
    team1: tuple[str, ...],
    team2: tuple[str, ...],
    team1_score: int,
    team2_score: int,
    *,
    minutes: int,
) -> MatchRecord:
    return MatchRecord(
        match_id=match_id,
        event_time=BASE_TIME + timedelta(minutes=minutes),
        game_type=GameType.SINGLES if len(team1) == 1 else GameType.DOUBLES,
        team1_player_ids=team1,
        team2_player_ids=team2,
        team1_score=team1_score,
        team2_score=team2_score,
    )


def _history() -> list[MatchRecord]:
    return [
        _match("g1", ("alice",), ("bob",), 11, 6, minutes=0),
        _match("g2", ("cara", "dan"), ("alice", "bob"), 11, 9, minutes=30),
        _match("g3", ("bob",), ("cara",), 7, 11, minutes=60),
        _match("g4", ("alice", "cara"), ("bob", "dan"), 10, 10, minutes=90),
    ]


@pytest.fixture()
def session_factory() -> sessionmaker[Session]:
    engine = create_db_engine("sqlite://")
    ensure_schema(engine)
    factory = create_session_factory(engine)
    with factory() as session:
        for player_id, rating in BASELINES.items():
            create_player(session, player_id=player_id, name=player_id.title(), baseline_rating=rating)
        session.commit()
    return factory


def _store_games(factory: sessionmaker[Session], matches: list[MatchRecord]) -> None:
    with factory() as session:
        for match in matches:
            insert_game(session, match)
        session.commit()


def test_repository_round_trips_games(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, list(reversed(_history())))

    with session_factory() as session:
        stored = fetch_match_records(session)
        erin_games = fetch_match_records(session, player_id="erin")

    assert [match.match_id for match in stored] == ["g1", "g2", "g3", "g4"]
    assert stored[1].team1_player_ids == ("cara", "dan")
    assert stored[1].game_type is GameType.DOUBLES
    assert stored[1].rating_changes == ()
    assert erin_games == []


def test_sync_all_players_matches_in_memory_replay(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, _history())
    expected = reconcile_history(_history(), BASELINES)

    summary = sync_all_players(session_factory=session_factory, system_config=_system_config())

    assert summary.processed_matches == 4
    assert summary.rating_changes_written == 12
    assert summary.players_processed == 5
    assert summary.players_updated == 4
    assert summary.players_unchanged == 1
    assert summary.players_failed == 0

    with session_factory() as session:
        players = fetch_players(session)
        stored = fetch_match_records(session)
        system = session.execute(select(RatingSystem)).scalar_one()

    for player_id, result in expected.players.items():
        assert players[player_id].rating == pytest.approx(result.final_rating)
        assert players[player_id].wins == result.stats.wins
        assert players[player_id].losses == result.stats.losses
        assert players[player_id].draws == result.stats.draws
        assert players[player_id].points_for == result.stats.points_for
    for stored_match, replayed in zip(stored, expected.matches):
        assert stored_match.rating_change_for("alice") == replayed.rating_change_for("alice")
    assert system.name == "pickleball_test"
    assert system.last_synced_at is not None


def test_second_sync_changes_nothing(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, _history())
    sync_all_players(session_factory=session_factory, system_config=_system_config())

    summary = sync_all_players(session_factory=session_factory, system_config=_system_config())
    assert summary.players_updated == 0
    assert summary.players_unchanged == 5

    with session_factory() as session:
        count = session.execute(select(func.count()).select_from(GameRatingChange)).scalar_one()
    assert count == 12


def test_dry_run_writes_nothing(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, _history())
    messages: list[str] = []

    summary = sync_all_players(
        session_factory=session_factory,
        system_config=_system_config(),
        dry_run=True,
        echo=messages.append,
    )

    assert summary.dry_run is True
    assert summary.players_updated == 4
    assert messages and messages[0].startswith("[dry-run]")
    with session_factory() as session:
        alice = session.get(Player, "alice")
        count = session.execute(select(func.count()).select_from(GameRatingChange)).scalar_one()
    assert alice.rating == pytest.approx(4.0)
    assert alice.wins == 0
    assert count == 0


def test_invalid_game_aborts_sync_before_writing(session_factory: sessionmaker[Session]) -> None:
    bad = _match("g9", ("alice", "bob"), ("cara",), 11, 3, minutes=200)
    _store_games(session_factory, _history() + [bad])

    with pytest.raises(InvalidMatchError):
        sync_all_players(session_factory=session_factory, system_config=_system_config())

    with session_factory() as session:
        assert session.get(Player, "alice").wins == 0


def test_one_player_write_failure_does_not_block_others(
    session_factory: sessionmaker[Session],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _store_games(session_factory, _history())
    real_apply = pipeline.apply_reconciliation

    def failing_for_bob(session: Session, result) -> bool:
        if result.player_id == "bob":
            raise LookupError("player_id=bob does not exist")
        return real_apply(session, result)

    monkeypatch.setattr(pipeline, "apply_reconciliation", failing_for_bob)
    summary = sync_all_players(session_factory=session_factory, system_config=_system_config())

    assert summary.players_failed == 1
    assert summary.failures[0].player_id == "bob"
    assert summary.players_succeeded == 4
    with session_factory() as session:
        assert session.get(Player, "bob").rating == pytest.approx(3.5)
        assert session.get(Player, "alice").wins == 1


def test_recorded_sync_restores_cached_fields(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, _history())
    sync_all_players(session_factory=session_factory, system_config=_system_config())

    with session_factory() as session:
        expected_rating = session.get(Player, "alice").rating
        session.get(Player, "alice").rating = 7.5
        session.get(Player, "alice").wins = 40
        session.commit()

    summary = sync_from_recorded_history(session_factory=session_factory, system_config=_system_config())

    assert summary.mode == "recorded"
    assert summary.players_updated == 1
    assert summary.players_failed == 0
    with session_factory() as session:
        alice = session.get(Player, "alice")
        assert alice.rating == pytest.approx(expected_rating)
        assert alice.wins == 1


def test_recorded_sync_isolates_players_with_unrated_games(session_factory: sessionmaker[Session]) -> None:
    _store_games(session_factory, _history())
    sync_all_players(session_factory=session_factory, system_config=_system_config())
    _store_games(session_factory, [_match("g5", ("dan",), ("erin",), 11, 2, minutes=120)])

    summary = sync_from_recorded_history(session_factory=session_factory, system_config=_system_config())

    assert sorted(failure.player_id for failure in summary.failures) == ["dan", "erin"]
    assert summary.players_succeeded == 3


def test_live_scoring_agrees_with_full_replay(session_factory: sessionmaker[Session]) -> None:
    params = RatingParameters()
    with session_factory() as session:
        for match in _history():
            record_match(session, match, params)
        session.commit()

    expected = reconcile_history(_history(), BASELINES, params)
    with session_factory() as session:
        players = fetch_players(session)
        stored = fetch_match_records(session)
    for player_id, result in expected.players.items():
        assert players[player_id].rating == pytest.approx(result.final_rating)
        assert players[player_id].draws == result.stats.draws
    assert all(len(match.rating_changes) == len(match.player_ids) for match in stored)

    summary = sync_all_players(session_factory=session_factory, system_config=_system_config())
    assert summary.players_updated == 0


def test_live_scoring_rejects_backdated_match(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as session:
        record_match(session, _history()[0])
        with pytest.raises(OutOfOrderMatchError):
            record_match(session, _match("g0", ("alice",), ("bob",), 11, 1, minutes=-30))


def test_live_scoring_rejects_unknown_player(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as session:
        with pytest.raises(MissingPlayerError) as exc_info:
            record_match(session, _match("g1", ("alice",), ("zoe",), 11, 1, minutes=0))
    assert exc_info.value.player_id == "zoe"


def test_live_scoring_rejects_stored_match_id(session_factory: sessionmaker[Session]) -> None:
    first = _history()[0]
    with session_factory() as session:
        update = record_match(session, first)
        with pytest.raises(InvalidMatchError) as exc_info:
            record_match(session, replace(first, event_time=first.event_time + timedelta(hours=1)))
        alice = session.get(Player, "alice")
        assert alice.wins == 1
        assert alice.rating == pytest.approx(update.as_mapping()["alice"].after)
    assert exc_info.value.match_id == "g1"
