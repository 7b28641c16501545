"""Tests for the entity store and its write-through behaviour."""

import json

import pytest

from cashi.audit import AuditLogger
from cashi.config import LedgerSettings
from cashi.models.audit import AuditEventType, AuditSeverity
from cashi.models.ledger import EntryKind
from cashi.queries import goals_progress
from cashi.services.storage import (
    CorruptRecordError,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    LedgerPersistence,
    StorageWriteError,
)
from cashi.store import EntityStore, IdAllocator
from cashi.validation import LedgerValidator


class FlakyKeyValueStore(InMemoryKeyValueStore):
    """In-memory medium whose writes can be switched off."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False
        self.writes = 0

    def set(self, key, value):
        if self.fail_writes:
            raise StorageWriteError("medium unavailable")
        self.writes += 1
        super().set(key, value)


class FixedClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def medium():
    return FlakyKeyValueStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(medium, audit_storage, clock):
    return EntityStore(
        persistence=LedgerPersistence(medium),
        validator=LedgerValidator(LedgerSettings(enforce_categories=False)),
        audit_logger=AuditLogger(storage=audit_storage),
        id_allocator=IdAllocator(clock=clock),
    )


def stored_entries(medium):
    return json.loads(medium.get("budgetEntries"))


def event_types(audit_storage):
    return [event.event_type for event in audit_storage.events]


class TestIdAllocator:
    """Tests for identity allocation."""

    def test_uses_clock(self):
        assert IdAllocator(clock=FixedClock(42)).next_id() == 42

    def test_bumps_when_clock_stands_still(self):
        allocator = IdAllocator(clock=FixedClock(42))
        assert [allocator.next_id() for _ in range(3)] == [42, 43, 44]

    def test_follows_clock_when_it_moves_on(self):
        clock = FixedClock(42)
        allocator = IdAllocator(clock=clock)
        allocator.next_id()
        clock.now = 100
        assert allocator.next_id() == 100

    def test_seed_moves_past_existing_ids(self):
        allocator = IdAllocator(clock=FixedClock(10))
        allocator.seed([5, 500, 20])
        assert allocator.last_id == 500
        assert allocator.next_id() == 501

    def test_seed_with_nothing_keeps_state(self):
        allocator = IdAllocator(clock=FixedClock(10), last_id=7)
        allocator.seed([])
        assert allocator.last_id == 7


class TestEntries:
    """Tests for entry mutations."""

    def test_add_entry(self, store, medium, clock):
        entry = store.add_entry("expense", "Lunch", "12.50", "Food", "2024-01-05")

        assert entry is not None
        assert entry.id == clock.now
        assert entry.kind == EntryKind.EXPENSE
        assert store.entries == (entry,)
        assert stored_entries(medium) == [entry.to_record()]

    def test_ids_are_unique_across_entries_and_goals(self, store):
        entry = store.add_entry("income", "Pay", 1000, "Salary", "2024-01-10")
        goal = store.add_goal("Food", 200)
        other = store.add_entry("expense", "Bus", 2, "Transportation", "2024-01-11")
        assert len({entry.id, goal.id, other.id}) == 3

    def test_invalid_add_is_a_no_op(self, store, medium, audit_storage):
        assert store.add_entry("expense", "Lunch", "", "Food", "2024-01-05") is None
        assert store.add_entry("expense", "", "5", "Food", "2024-01-05") is None
        assert store.add_entry("expense", "Lunch", "5", "Food", "") is None

        assert store.entries == ()
        assert medium.writes == 0
        assert event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED] * 3

    def test_amount_too_large_for_float_is_a_no_op(self, store, medium):
        assert store.add_entry("expense", "Lunch", 10**400, "Food", "2024-01-05") is None
        assert store.add_goal("Food", 10**400) is None
        assert store.entries == ()
        assert store.goals == ()
        assert medium.writes == 0

    def test_update_entry_keeps_id_and_position(self, store, medium):
        first = store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        second = store.add_entry("expense", "Bus", 2, "Transportation", "2024-01-06")

        assert store.update_entry(first.id, "Dinner", "25", "Food", "2024-01-07") is True

        updated = store.entries[0]
        assert updated.id == first.id
        assert updated.description == "Dinner"
        assert updated.amount == 25.0
        assert updated.date == "2024-01-07"
        assert updated.kind == EntryKind.EXPENSE
        assert store.entries[1] == second
        assert stored_entries(medium)[0]["description"] == "Dinner"

    def test_update_entry_can_change_kind(self, store):
        entry = store.add_entry("expense", "Refund", 10, "Other", "2024-01-05")
        assert store.update_entry(entry.id, "Refund", 10, "Other", "2024-01-05", kind="income")
        assert store.get_entry(entry.id).kind == EntryKind.INCOME

    def test_update_unknown_entry(self, store, medium, audit_storage):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        writes = medium.writes

        assert store.update_entry(999, "x", 1, "Food", "2024-01-05") is False
        assert medium.writes == writes
        assert audit_storage.events[-1].event_type == AuditEventType.LOOKUP_MISSED

    def test_invalid_update_leaves_entry_untouched(self, store, medium):
        entry = store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        writes = medium.writes

        assert store.update_entry(entry.id, "Lunch", "-1", "Food", "2024-01-05") is False
        assert store.get_entry(entry.id) == entry
        assert medium.writes == writes

    def test_delete_entry(self, store, medium):
        first = store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        second = store.add_entry("income", "Pay", 100, "Salary", "2024-01-06")

        assert store.delete_entry(first.id) is True
        assert store.entries == (second,)
        assert [record["id"] for record in stored_entries(medium)] == [second.id]

    def test_delete_unknown_entry_leaves_record_identical(self, store, medium):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        before = medium.get("budgetEntries")

        assert store.delete_entry(123) is False
        assert medium.get("budgetEntries") == before

    def test_entries_snapshot_is_immutable(self, store):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        snapshot = store.entries
        store.add_entry("expense", "Bus", 2, "Transportation", "2024-01-06")
        assert len(snapshot) == 1


class TestGoals:
    """Tests for goal mutations."""

    def test_add_goal(self, store, medium):
        goal = store.add_goal("Food", "200")
        assert goal.amount == 200.0
        assert json.loads(medium.get("budgetGoals")) == [goal.to_record()]

    def test_add_goal_rejects_bad_amount(self, store, medium):
        assert store.add_goal("Food", "lots") is None
        assert store.goals == ()
        assert medium.writes == 0

    def test_update_goal(self, store):
        goal = store.add_goal("Food", 200)
        assert store.update_goal(goal.id, "Housing", 900) is True
        assert store.get_goal(goal.id).category == "Housing"
        assert store.get_goal(goal.id).amount == 900

    def test_goal_updated_to_zero_reports_no_target(self, store):
        store.add_entry("expense", "Lunch", 40, "Food", "2024-01-05")
        goal = store.add_goal("Food", 200)

        assert store.update_goal(goal.id, "Food", "0") is True
        progress = goals_progress(store.goals, store.entries)
        assert len(progress) == 1
        assert progress[0].ratio == 0.0
        assert progress[0].has_target is False
        assert progress[0].spent == 40
        assert progress[0].is_over_budget is False

    def test_update_unknown_goal(self, store):
        assert store.update_goal(5, "Food", 10) is False

    def test_delete_goal_keeps_entries(self, store):
        entry = store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        goal = store.add_goal("Food", 200)

        assert store.delete_goal(goal.id) is True
        assert store.goals == ()
        assert store.entries == (entry,)
        assert store.delete_goal(goal.id) is False


class TestLoadAndSync:
    """Tests for loading, write-through and failure handling."""

    def test_load_replaces_state_and_seeds_ids(self, audit_storage):
        medium = InMemoryKeyValueStore({
            "budgetEntries": json.dumps([{
                "id": 5_000_000_000_000, "type": "income", "description": "Pay",
                "amount": 10, "category": "Salary", "date": "2024-01-01",
            }]),
            "budgetGoals": json.dumps([{"id": 5_000_000_000_001, "category": "Food", "amount": 5}]),
        })
        store = EntityStore(
            persistence=LedgerPersistence(medium),
            validator=LedgerValidator(LedgerSettings()),
            audit_logger=AuditLogger(storage=audit_storage),
            id_allocator=IdAllocator(clock=FixedClock(1)),
        )

        state = store.load()
        assert len(state.entries) == 1
        assert len(store.goals) == 1

        entry = store.add_entry("expense", "Lunch", 3, "Food", "2024-01-02")
        assert entry.id == 5_000_000_000_002
        assert audit_storage.events[0].event_type == AuditEventType.STATE_LOADED

    def test_round_trip_through_new_store(self, store, medium):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        store.add_goal("Food", 200)

        reopened = EntityStore(
            persistence=LedgerPersistence(medium),
            validator=LedgerValidator(LedgerSettings()),
        )
        reopened.load()
        assert reopened.entries == store.entries
        assert reopened.goals == store.goals

    def test_failed_write_keeps_memory_and_raises(self, store, medium, audit_storage):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        medium.fail_writes = True

        with pytest.raises(StorageWriteError):
            store.add_entry("expense", "Bus", 2, "Transportation", "2024-01-06")

        assert len(store.entries) == 2
        assert len(stored_entries(medium)) == 1

        failure = audit_storage.events[-1]
        assert failure.event_type == AuditEventType.SAVE_FAILED
        assert failure.severity == AuditSeverity.ERROR
        assert failure.details["operation"] == "add_entry"

    def test_sync_retries_after_failure(self, store, medium):
        medium.fail_writes = True
        with pytest.raises(StorageWriteError):
            store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")

        medium.fail_writes = False
        store.sync()
        assert len(stored_entries(medium)) == 1

    def test_failed_load_leaves_state_untouched(self, store, medium, audit_storage):
        store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        medium.set("budgetEntries", "[{]")

        with pytest.raises(CorruptRecordError):
            store.load()

        assert len(store.entries) == 1
        assert audit_storage.events[-1].event_type == AuditEventType.LOAD_FAILED

    def test_mutations_are_audited(self, store, audit_storage):
        entry = store.add_entry("expense", "Lunch", 10, "Food", "2024-01-05")
        store.update_entry(entry.id, "Lunch", 11, "Food", "2024-01-05")
        store.delete_entry(entry.id)

        mutations = audit_storage.get_events_by_entity("entry", entry.id)
        assert [event.event_type for event in mutations] == [
            AuditEventType.ENTRY_ADDED,
            AuditEventType.ENTRY_UPDATED,
            AuditEventType.ENTRY_DELETED,
        ]
        assert mutations[0].details["record"]["type"] == "expense"

    def test_memory_only_store(self):
        store = EntityStore(validator=LedgerValidator(LedgerSettings()))
        entry = store.add_entry("income", "Pay", 10, "Salary", "2024-01-01")

        assert store.entries == (entry,)
        assert store.load().entries == [entry]
        store.sync()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
