"""Database repository helpers."""

from repositories.base import ensure_schema, mark_system_synced, upsert_system
from repositories.games import (
    fetch_match_records,
    game_to_match_record,
    insert_game,
    replace_rating_changes,
)
from repositories.players import apply_reconciliation, create_player, fetch_players, player_to_snapshot

__all__ = [
    "apply_reconciliation",
    "create_player",
    "ensure_schema",
    "fetch_match_records",
    "fetch_players",
    "game_to_match_record",
    "insert_game",
    "mark_system_synced",
    "player_to_snapshot",
    "replace_rating_changes",
    "upsert_system",
]
