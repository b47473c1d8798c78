"""Rating-history series for charting."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from domain.ratings.common import MatchRecord, RatingHistoryPoint, matches_for_player


@dataclass(frozen=True)
class ChartPoint:
    event_time: datetime
    rating: float
    match_id: str
    label: str


def opponent_label(opponent_ids: Sequence[str], player_names: Mapping[str, str] | None = None) -> str:
    if not opponent_ids:
        return "Unknown opponent"
    names = [(player_names or {}).get(opponent_id, opponent_id) for opponent_id in opponent_ids]
    return "vs " + " & ".join(names)


def history_from_recorded_changes(player_id: str, matches: Iterable[MatchRecord]) -> list[RatingHistoryPoint]:
    """Timeline read straight from the rating changes stored on each match.

    Matches without a stored change for the player are skipped.
    """
    points = []
    for match in matches_for_player(matches, player_id):
        change = match.rating_change_for(player_id)
        if change is None:
            continue
        points.append(
            RatingHistoryPoint(
                player_id=player_id,
                match_id=match.match_id,
                event_time=match.event_time,
                before=change.before,
                after=change.after,
                outcome=match.outcome_for(player_id),
                opponent_ids=match.opponents_of(player_id),
            )
        )
    return points


def rating_chart_series(
    history: Sequence[RatingHistoryPoint],
    *,
    current_rating: float,
    as_of: datetime,
    since: datetime | None = None,
    player_names: Mapping[str, str] | None = None,
) -> list[ChartPoint]:
    """Chart points for a player's rating history within an optional window.

    The series opens with the pre-match rating of the first match in the window
    and then carries one point per match. With no matches in the window, a
    single current-rating point stamped ``as_of`` is returned.
    """
    points = sorted(history, key=lambda point: (point.event_time, point.match_id))
    if since is not None:
        points = [point for point in points if point.event_time >= since]

    if not points:
        return [ChartPoint(event_time=as_of, rating=current_rating, match_id="current", label="Current Rating")]

    first = points[0]
    series = [
        ChartPoint(
            event_time=first.event_time,
            rating=first.before,
            match_id=f"{first.match_id}-before",
            label="Starting Rating",
        )
    ]
    series.extend(
        ChartPoint(
            event_time=point.event_time,
            rating=point.after,
            match_id=point.match_id,
            label=opponent_label(point.opponent_ids, player_names),
        )
        for point in points
    )
    return series


__all__ = ["ChartPoint", "history_from_recorded_changes", "opponent_label", "rating_chart_series"]
