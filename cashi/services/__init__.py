"""Services package."""

from cashi.services.storage import (
    AuditStorageInterface,
    CorruptRecordError,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    LedgerPersistence,
    StorageError,
    StorageWriteError,
)

__all__ = [
    "AuditStorageInterface",
    "CorruptRecordError",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LedgerPersistence",
    "StorageError",
    "StorageWriteError",
]
