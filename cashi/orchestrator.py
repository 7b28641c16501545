"""
Main Orchestrator for the Cashi ledger engine

This module ties the components together into one session, following the
control flow a UI drives:

    UI event -> store mutation (then write-through)   or   filter change
             -> filter engine re-derives the subset
             -> aggregation engine re-derives the summaries

DESIGN DECISION: The session keeps no derived state. Every view is
recomputed from the store's current entries and the current filter spec
when asked for, so there is nothing to invalidate after a mutation.
Filter changes never touch persistence.
"""

import logging
from typing import Any, Optional, Union

from cashi.audit import AuditLogger, create_correlation_id
from cashi.config import Settings, get_settings
from cashi.models.ledger import (
    Entry,
    EntryKind,
    FilterSpec,
    Goal,
    GoalProgress,
    Granularity,
    LedgerSummary,
    SeriesBucket,
    Totals,
)
from cashi.queries import aggregation
from cashi.queries.filters import apply_filters
from cashi.services.storage import (
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    LedgerPersistence,
)
from cashi.store import EntityStore
from cashi.validation import LedgerValidator


class LedgerSession:
    """
    One user's view of the ledger: the store plus a transient filter spec.

    Mutations pass straight through to the store. Derived views are
    always computed from `filtered_entries`.
    """

    def __init__(
        self,
        store: EntityStore,
        filters: Optional[FilterSpec] = None,
        year_aligned_monthly: bool = True,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._filters = filters or FilterSpec()
        self._year_aligned_monthly = year_aligned_monthly
        self._audit = audit_logger or AuditLogger()

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._store.entries

    @property
    def goals(self) -> tuple[Goal, ...]:
        return self._store.goals

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_entry(
        self,
        kind: Any,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
    ) -> Optional[Entry]:
        return self._store.add_entry(kind, description, amount, category, date)

    def update_entry(
        self,
        entry_id: int,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
        kind: Optional[Any] = None,
    ) -> bool:
        return self._store.update_entry(entry_id, description, amount, category, date, kind=kind)

    def delete_entry(self, entry_id: int) -> bool:
        return self._store.delete_entry(entry_id)

    def add_goal(self, category: Any, amount: Any) -> Optional[Goal]:
        return self._store.add_goal(category, amount)

    def update_goal(self, goal_id: int, category: Any, amount: Any) -> bool:
        return self._store.update_goal(goal_id, category, amount)

    def delete_goal(self, goal_id: int) -> bool:
        return self._store.delete_goal(goal_id)

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    @property
    def filters(self) -> FilterSpec:
        return self._filters

    def set_filters(self, spec: FilterSpec) -> FilterSpec:
        self._filters = spec
        self._audit.log_filters_changed(spec.model_dump(mode="json"))
        return spec

    def toggle_kind(self, kind: Union[EntryKind, str]) -> FilterSpec:
        return self.set_filters(self._filters.toggle_kind(kind))

    def toggle_category(self, category: str) -> FilterSpec:
        return self.set_filters(self._filters.toggle_category(category))

    def set_date_range(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> FilterSpec:
        return self.set_filters(self._filters.with_date_range(date_from, date_to))

    def clear_filters(self) -> FilterSpec:
        return self.set_filters(FilterSpec())

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def filtered_entries(self) -> list[Entry]:
        return apply_filters(self._store.entries, self._filters)

    def totals(self) -> Totals:
        return aggregation.totals(self.filtered_entries)

    def category_totals(self, kind: Union[EntryKind, str]) -> dict[str, float]:
        return aggregation.category_totals(self.filtered_entries, kind)

    def time_series(self, granularity: Union[Granularity, str] = Granularity.MONTHLY) -> list[SeriesBucket]:
        return aggregation.time_series(
            self.filtered_entries,
            granularity,
            year_aligned=self._year_aligned_monthly,
        )

    def goals_progress(self) -> list[GoalProgress]:
        return aggregation.goals_progress(self._store.goals, self.filtered_entries)

    def summary(self, granularity: Union[Granularity, str] = Granularity.MONTHLY) -> LedgerSummary:
        """Every view, computed from a single filtered set."""
        entries = self.filtered_entries
        return LedgerSummary(
            filters=self._filters,
            entry_count=len(entries),
            totals=aggregation.totals(entries),
            expense_by_category=aggregation.category_totals(entries, EntryKind.EXPENSE),
            income_by_category=aggregation.category_totals(entries, EntryKind.INCOME),
            granularity=Granularity(granularity),
            series=aggregation.time_series(
                entries,
                granularity,
                year_aligned=self._year_aligned_monthly,
            ),
            goals=aggregation.goals_progress(self._store.goals, entries),
        )


def create_medium(settings: Optional[Settings] = None) -> KeyValueStore:
    """Build the key-value medium selected by CASHI_STORAGE_BACKEND."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(storage_settings.path)


def create_ledger_session(
    settings: Optional[Settings] = None,
    medium: Optional[KeyValueStore] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> LedgerSession:
    """
    Wire up a session from configuration and load persisted state once.

    Args:
        settings: Settings to use; read from the environment if None.
        medium: Key-value medium; built from settings if None.
        audit_storage: Optional sink for audit events.

    Raises:
        StorageError: If the persisted state cannot be loaded.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    ledger_settings = settings.ledger

    if settings.app.debug_mode:
        # Lets lookup misses, saves and filter changes through
        logging.getLogger("cashi").setLevel(logging.DEBUG)

    audit_logger = AuditLogger(
        storage=audit_storage,
        correlation_id=create_correlation_id(),
    )
    persistence = LedgerPersistence(
        medium if medium is not None else create_medium(settings),
        entries_key=storage_settings.entries_key,
        goals_key=storage_settings.goals_key,
    )
    store = EntityStore(
        persistence=persistence,
        validator=LedgerValidator(ledger_settings),
        audit_logger=audit_logger,
    )
    store.load()

    return LedgerSession(
        store,
        year_aligned_monthly=ledger_settings.year_aligned_monthly,
        audit_logger=audit_logger,
    )
