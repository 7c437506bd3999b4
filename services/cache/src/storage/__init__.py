"""Storage package."""

from storage.hash_store import HashStore, Collection, HASH_COLLECTIONS

__all__ = ["HashStore", "Collection", "HASH_COLLECTIONS"]
