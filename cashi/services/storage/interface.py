"""
Abstract Storage Interface

DESIGN DECISION: The ledger never talks to a concrete storage medium.
It needs exactly two things from one: read a string value by key and
write a string value under a key - the contract of browser localStorage.
This allows us to:
1. Keep ledger state in a JSON file for local use
2. Use in-memory storage for testing
3. Swap in any other key-value backend without touching ledger logic

Serialization of entries and goals lives in the persistence adapter,
not in the media.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cashi.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract interface for a string key-value medium.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Record key

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the medium cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: Record key
            value: Serialized record

        Raises:
            StorageWriteError: If the value could not be written
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit event sinks.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to keep

        Returns:
            True if kept successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'entry', 'goal')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptRecordError(StorageError):
    """A stored record exists but cannot be decoded."""
    pass


class StorageWriteError(StorageError):
    """A record could not be written to the medium."""
    pass
