"""Filtering and aggregation package."""

from cashi.queries.aggregation import (
    bucket_labels,
    category_shares,
    category_totals,
    goal_progress,
    goals_progress,
    time_series,
    totals,
)
from cashi.queries.filters import apply_filters, entry_matches

__all__ = [
    "apply_filters",
    "bucket_labels",
    "category_shares",
    "category_totals",
    "entry_matches",
    "goal_progress",
    "goals_progress",
    "time_series",
    "totals",
]
