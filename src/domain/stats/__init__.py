"""Derived statistics over match histories."""

from domain.stats.form import FormMetric, FormParameters, FormTrend, compute_form
from domain.stats.head_to_head import (
    HeadToHead,
    Streak,
    biggest_rivals,
    compute_head_to_head,
    compute_player_stats,
)
from domain.stats.history import ChartPoint, history_from_recorded_changes, rating_chart_series
from domain.stats.partnerships import Partnership, compute_partnership, compute_partnerships
from domain.stats.standings import Standing, compute_standings, public_rankings

__all__ = [
    "ChartPoint",
    "FormMetric",
    "FormParameters",
    "FormTrend",
    "HeadToHead",
    "Partnership",
    "Standing",
    "Streak",
    "biggest_rivals",
    "compute_form",
    "compute_head_to_head",
    "compute_partnership",
    "compute_partnerships",
    "compute_player_stats",
    "compute_standings",
    "history_from_recorded_changes",
    "public_rankings",
    "rating_chart_series",
]
