"""
In-Memory Storage

Process-local implementations of the storage interfaces. Nothing survives
the process; used by tests and by throwaway sessions
(CASHI_STORAGE_BACKEND=memory).
"""

from typing import Optional

from cashi.models.audit import AuditEvent
from cashi.services.storage.interface import AuditStorageInterface, KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Key-value medium backed by a dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list, oldest first."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        return [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
