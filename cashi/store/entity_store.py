"""
Entity Store

Owns the canonical lists of entries and goals and is the only place they
change. Every operation follows the same sequence:

1. Validate the raw input (invalid input is a no-op)
2. Look up the target by id where needed (unknown id is a no-op)
3. Apply the change in memory
4. Write the full state through to the persistence adapter

DESIGN DECISION: If step 4 fails the in-memory change is kept and the
storage error propagates to the caller. The stored copy is then behind
memory until the next successful sync; `sync()` retries with the current
state. This is the one inconsistency window the engine accepts, and it
is logged as an error audit event whenever it opens.
"""

import time
from collections.abc import Callable, Iterable
from typing import Any, Optional

from cashi.audit import AuditLogger
from cashi.models.ledger import Entry, Goal, LedgerState
from cashi.services.storage import LedgerPersistence
from cashi.validation import LedgerValidator


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class IdAllocator:
    """
    Hands out integer identities that increase with creation time.

    An id is the creation time in epoch milliseconds, bumped past the last
    id handed out when the clock has not moved on. Entries and goals share
    one allocator, so identities are unique across both.
    """

    def __init__(
        self,
        clock: Callable[[], int] = _epoch_millis,
        last_id: int = 0,
    ):
        self._clock = clock
        self._last_id = last_id

    @property
    def last_id(self) -> int:
        return self._last_id

    def seed(self, existing_ids: Iterable[int]) -> None:
        """Never hand out an id at or below one already in use."""
        self._last_id = max([self._last_id, *existing_ids])

    def next_id(self) -> int:
        candidate = self._clock()
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate


def _index_of(items: list, entity_id: int) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == entity_id:
            return index
    return None


class EntityStore:
    """
    In-memory owner of ledger entities with write-through persistence.

    Reads return immutable snapshots; the models themselves are frozen.
    """

    def __init__(
        self,
        persistence: Optional[LedgerPersistence] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_allocator: Optional[IdAllocator] = None,
    ):
        """
        Initialize the store empty. Call load() to read persisted state.

        Args:
            persistence: Adapter written through after every mutation.
                        If None, the store is memory-only.
            validator: Input validator; built from settings if None.
            audit_logger: Receives mutation and failure events.
            id_allocator: Identity source; time-based if None.
        """
        self._persistence = persistence
        self._validator = validator or LedgerValidator()
        self._audit = audit_logger or AuditLogger()
        self._ids = id_allocator or IdAllocator()
        self._entries: list[Entry] = []
        self._goals: list[Goal] = []

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def goals(self) -> tuple[Goal, ...]:
        return tuple(self._goals)

    def get_entry(self, entry_id: int) -> Optional[Entry]:
        index = _index_of(self._entries, entry_id)
        return None if index is None else self._entries[index]

    def get_goal(self, goal_id: int) -> Optional[Goal]:
        index = _index_of(self._goals, goal_id)
        return None if index is None else self._goals[index]

    def snapshot(self) -> LedgerState:
        return LedgerState(entries=list(self._entries), goals=list(self._goals))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> LedgerState:
        """
        Replace in-memory state with the persisted state.

        Raises:
            StorageError: If the medium fails or a record is corrupt.
                          The in-memory state is left untouched.
        """
        if self._persistence is None:
            return self.snapshot()

        try:
            state = self._persistence.load()
        except Exception as e:
            self._audit.log_load_failed(e)
            raise

        self._entries = list(state.entries)
        self._goals = list(state.goals)
        self._ids.seed(item.id for item in [*self._entries, *self._goals])
        self._audit.log_state_loaded(len(self._entries), len(self._goals))
        return state

    def sync(self, operation: str = "sync") -> None:
        """
        Write the current state through to the medium.

        Called after every successful mutation; call it directly to retry
        after a failed write.
        """
        if self._persistence is None:
            return
        try:
            self._persistence.save(self._entries, self._goals)
        except Exception as e:
            self._audit.log_save_failed(e, operation)
            raise
        self._audit.log_state_saved(len(self._entries), len(self._goals))

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def add_entry(
        self,
        kind: Any,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
    ) -> Optional[Entry]:
        """
        Create an entry with a fresh id and append it.

        Returns:
            The new entry, or None if the input was invalid
        """
        result = self._validator.validate_entry(kind, description, amount, category, date)
        if not result.is_valid:
            self._audit.log_validation_failed(
                "entry", "add_entry", [issue.model_dump() for issue in result.issues]
            )
            return None

        entry = Entry(id=self._ids.next_id(), **result.cleaned)
        self._entries.append(entry)
        self._audit.log_mutation("entry", "added", entry.id, entry.to_record())
        self.sync("add_entry")
        return entry

    def update_entry(
        self,
        entry_id: int,
        description: Any,
        amount: Any,
        category: Any,
        date: Any,
        kind: Optional[Any] = None,
    ) -> bool:
        """
        Replace every mutable field of an entry, keeping its id and position.

        Args:
            kind: New kind; the entry keeps its current kind if None.

        Returns:
            True if the entry was updated
        """
        index = _index_of(self._entries, entry_id)
        if index is None:
            self._audit.log_lookup_missed("entry", "update_entry", entry_id)
            return False

        current = self._entries[index]
        result = self._validator.validate_entry(
            current.kind if kind is None else kind,
            description,
            amount,
            category,
            date,
        )
        if not result.is_valid:
            self._audit.log_validation_failed(
                "entry",
                "update_entry",
                [issue.model_dump() for issue in result.issues],
                entity_id=entry_id,
            )
            return False

        updated = Entry(id=entry_id, **result.cleaned)
        self._entries[index] = updated
        self._audit.log_mutation("entry", "updated", entry_id, updated.to_record())
        self.sync("update_entry")
        return True

    def delete_entry(self, entry_id: int) -> bool:
        """Remove an entry. Unknown ids leave the list exactly as it was."""
        index = _index_of(self._entries, entry_id)
        if index is None:
            self._audit.log_lookup_missed("entry", "delete_entry", entry_id)
            return False

        del self._entries[index]
        self._audit.log_mutation("entry", "deleted", entry_id)
        self.sync("delete_entry")
        return True

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def add_goal(self, category: Any, amount: Any) -> Optional[Goal]:
        """
        Create a goal with a fresh id and append it.

        Returns:
            The new goal, or None if the input was invalid
        """
        result = self._validator.validate_goal(category, amount)
        if not result.is_valid:
            self._audit.log_validation_failed(
                "goal", "add_goal", [issue.model_dump() for issue in result.issues]
            )
            return None

        goal = Goal(id=self._ids.next_id(), **result.cleaned)
        self._goals.append(goal)
        self._audit.log_mutation("goal", "added", goal.id, goal.to_record())
        self.sync("add_goal")
        return goal

    def update_goal(self, goal_id: int, category: Any, amount: Any) -> bool:
        """Replace a goal's category and amount, keeping its id and position."""
        index = _index_of(self._goals, goal_id)
        if index is None:
            self._audit.log_lookup_missed("goal", "update_goal", goal_id)
            return False

        result = self._validator.validate_goal(category, amount)
        if not result.is_valid:
            self._audit.log_validation_failed(
                "goal",
                "update_goal",
                [issue.model_dump() for issue in result.issues],
                entity_id=goal_id,
            )
            return False

        updated = Goal(id=goal_id, **result.cleaned)
        self._goals[index] = updated
        self._audit.log_mutation("goal", "updated", goal_id, updated.to_record())
        self.sync("update_goal")
        return True

    def delete_goal(self, goal_id: int) -> bool:
        """Remove a goal. Entries in its category are untouched."""
        index = _index_of(self._goals, goal_id)
        if index is None:
            self._audit.log_lookup_missed("goal", "delete_goal", goal_id)
            return False

        del self._goals[index]
        self._audit.log_mutation("goal", "deleted", goal_id)
        self.sync("delete_goal")
        return True
