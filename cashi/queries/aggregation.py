"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and works only on the entries
it is given - always the output of the filter engine. Nothing here reads
the store, so every summary a UI shows is consistent with one filter spec.

Provides:
- totals: income, expense and balance
- category_totals / category_shares: sparse per-category sums
- time_series: income/expense per day, month or year
- goal_progress: spending against category goals
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Union

from cashi.models.ledger import (
    CategoryShare,
    Entry,
    EntryKind,
    Goal,
    GoalProgress,
    Granularity,
    SeriesBucket,
    Totals,
)


# Length of the YYYY-MM-DD prefix a bucket label covers
_LABEL_LENGTH = {
    Granularity.DAILY: 10,
    Granularity.MONTHLY: 7,
    Granularity.YEARLY: 4,
}


def totals(entries: Iterable[Entry]) -> Totals:
    """Sum income and expense; balance is their difference."""
    income = 0.0
    expense = 0.0
    for entry in entries:
        if entry.kind == EntryKind.INCOME:
            income += entry.amount
        else:
            expense += entry.amount
    return Totals(income=income, expense=expense, balance=income - expense)


def category_totals(
    entries: Iterable[Entry],
    kind: Union[EntryKind, str],
) -> dict[str, float]:
    """
    Sum amounts per category for one kind.

    Only categories that occur are present; keys follow first appearance.
    """
    kind = EntryKind(kind)
    result: dict[str, float] = {}
    for entry in entries:
        if entry.kind != kind:
            continue
        result[entry.category] = result.get(entry.category, 0.0) + entry.amount
    return result


def category_shares(
    entries: Iterable[Entry],
    kind: Union[EntryKind, str],
) -> list[CategoryShare]:
    """Per-category sums as ordered slices for a breakdown chart."""
    return [
        CategoryShare(name=name, value=value)
        for name, value in category_totals(entries, kind).items()
    ]


def _month_range(start: tuple[int, int], end: tuple[int, int]) -> list[str]:
    year, month = start
    labels = []
    while (year, month) <= end:
        labels.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return labels


def bucket_labels(
    first: str,
    last: str,
    granularity: Union[Granularity, str],
    year_aligned: bool = True,
) -> list[str]:
    """
    Enumerate bucket labels covering first..last (YYYY-MM-DD, inclusive).

    Monthly buckets span whole calendar years when year_aligned is set:
    January of the first date's year through December of the last's.
    """
    granularity = Granularity(granularity)
    start = date.fromisoformat(first)
    end = date.fromisoformat(last)

    if granularity == Granularity.DAILY:
        days = (end - start).days
        return [(start + timedelta(days=offset)).isoformat() for offset in range(days + 1)]

    if granularity == Granularity.MONTHLY:
        if year_aligned:
            return _month_range((start.year, 1), (end.year, 12))
        return _month_range((start.year, start.month), (end.year, end.month))

    return [f"{year:04d}" for year in range(start.year, end.year + 1)]


def time_series(
    entries: Iterable[Entry],
    granularity: Union[Granularity, str],
    year_aligned: bool = True,
) -> list[SeriesBucket]:
    """
    Income and expense per time bucket, in chronological order.

    Buckets run from the earliest to the latest entry date (see
    bucket_labels for the monthly alignment); buckets without entries
    report zero. No entries means no buckets.
    """
    granularity = Granularity(granularity)
    entries = list(entries)
    if not entries:
        return []

    dates = sorted(entry.date for entry in entries)
    labels = bucket_labels(dates[0], dates[-1], granularity, year_aligned)

    # A label is a prefix of every date in its bucket
    width = _LABEL_LENGTH[granularity]
    income: dict[str, float] = defaultdict(float)
    expense: dict[str, float] = defaultdict(float)
    for entry in entries:
        key = entry.date[:width]
        if entry.kind == EntryKind.INCOME:
            income[key] += entry.amount
        else:
            expense[key] += entry.amount

    return [
        SeriesBucket(label=label, income=income.get(label, 0.0), expense=expense.get(label, 0.0))
        for label in labels
    ]


def goal_progress(goal: Goal, entries: Iterable[Entry]) -> GoalProgress:
    """
    Spending in the goal's category relative to its target.

    A target of zero (or below) reports ratio 0.0 and has_target False.
    """
    spent = category_totals(entries, EntryKind.EXPENSE).get(goal.category, 0.0)
    has_target = goal.amount > 0
    return GoalProgress(
        goal_id=goal.id,
        category=goal.category,
        target=goal.amount,
        spent=spent,
        ratio=spent / goal.amount if has_target else 0.0,
        has_target=has_target,
    )


def goals_progress(
    goals: Iterable[Goal],
    entries: Iterable[Entry],
) -> list[GoalProgress]:
    """Progress for every goal, in goal order."""
    entries = list(entries)
    return [goal_progress(goal, entries) for goal in goals]
