"""
Filter Engine

Produces the subset of entries every summary is computed from.

Criteria combine with AND across classes (kind, category, date range)
and OR within a class (any selected kind, any selected category).
An empty class does not restrict. Dates are compared as YYYY-MM-DD
strings, which orders them correctly because the format is fixed-width.
"""

from collections.abc import Iterable

from cashi.models.ledger import Entry, FilterSpec


def entry_matches(entry: Entry, spec: FilterSpec) -> bool:
    """Does a single entry pass every criterion of the spec?"""
    if spec.kinds and entry.kind not in spec.kinds:
        return False
    if spec.categories and entry.category not in spec.categories:
        return False
    if spec.date_from is not None and entry.date < spec.date_from:
        return False
    if spec.date_to is not None and entry.date > spec.date_to:
        return False
    return True


def apply_filters(entries: Iterable[Entry], spec: FilterSpec) -> list[Entry]:
    """
    Return the entries passing the spec, in input order.

    An empty spec returns every entry.
    """
    return [entry for entry in entries if entry_matches(entry, spec)]
