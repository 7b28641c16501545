"""
Ledger Persistence Adapter

Maps ledger state onto two independent records of a key-value medium:

    budgetEntries -> JSON array of entry objects
    budgetGoals   -> JSON array of goal objects

DESIGN DECISION: Loading is all-or-nothing. A record that is present but
cannot be decoded as a list of entities fails the whole load with
CorruptRecordError - we never silently drop the items we could not read,
because the next write-through would then erase them for good.

Saving is write-through: both records are rewritten on every call.
"""

from collections.abc import Sequence
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from cashi.models.ledger import Entry, Goal, LedgerState
from cashi.services.storage.interface import CorruptRecordError, KeyValueStore


DEFAULT_ENTRIES_KEY = "budgetEntries"
DEFAULT_GOALS_KEY = "budgetGoals"

_ENTRY_LIST = TypeAdapter(list[Entry])
_GOAL_LIST = TypeAdapter(list[Goal])


class LedgerPersistence:
    """
    Serializes ledger state to and from a KeyValueStore.
    """

    def __init__(
        self,
        medium: KeyValueStore,
        entries_key: str = DEFAULT_ENTRIES_KEY,
        goals_key: str = DEFAULT_GOALS_KEY,
    ):
        self._medium = medium
        self._entries_key = entries_key
        self._goals_key = goals_key

    @property
    def medium(self) -> KeyValueStore:
        return self._medium

    def _read_list(self, key: str, adapter: TypeAdapter) -> list:
        raw: Optional[str] = self._medium.get(key)
        # An absent or blank record means nothing was saved yet
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptRecordError(
                f"Record '{key}' is malformed ({e.error_count()} errors): {e}"
            )

    def load(self) -> LedgerState:
        """
        Read entries and goals from the medium.

        Returns:
            LedgerState with both lists in stored order

        Raises:
            CorruptRecordError: If either record is present but malformed
            StorageError: If the medium itself fails
        """
        entries = self._read_list(self._entries_key, _ENTRY_LIST)
        goals = self._read_list(self._goals_key, _GOAL_LIST)
        return LedgerState(entries=entries, goals=goals)

    def save(self, entries: Sequence[Entry], goals: Sequence[Goal]) -> None:
        """
        Write both records, unconditionally.

        Raises:
            StorageError: If the medium rejects either write
        """
        self._medium.set(
            self._entries_key,
            _ENTRY_LIST.dump_json(list(entries), by_alias=True).decode("utf-8"),
        )
        self._medium.set(
            self._goals_key,
            _GOAL_LIST.dump_json(list(goals)).decode("utf-8"),
        )
