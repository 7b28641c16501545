"""
Storage Services Package

Provides the abstract key-value interface, concrete media and the adapter
that maps ledger state onto them. Designed so the medium is swappable.
"""

from cashi.services.storage.interface import (
    AuditStorageInterface,
    CorruptRecordError,
    KeyValueStore,
    StorageError,
    StorageWriteError,
)
from cashi.services.storage.json_file import JsonFileKeyValueStore
from cashi.services.storage.memory import InMemoryAuditStorage, InMemoryKeyValueStore
from cashi.services.storage.persistence import (
    DEFAULT_ENTRIES_KEY,
    DEFAULT_GOALS_KEY,
    LedgerPersistence,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "CorruptRecordError",
    "StorageError",
    "StorageWriteError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Ledger adapter
    "DEFAULT_ENTRIES_KEY",
    "DEFAULT_GOALS_KEY",
    "LedgerPersistence",
]
