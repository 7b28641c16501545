"""Entity store package."""

from cashi.store.entity_store import EntityStore, IdAllocator

__all__ = ["EntityStore", "IdAllocator"]
