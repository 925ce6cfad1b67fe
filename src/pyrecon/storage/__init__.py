"""Persisted collection store.

The engine only depends on :class:`CollectionStore`: named string blobs
that are read and written whole. Each ``put`` is atomic for its own key;
nothing spans keys.
"""

from pyrecon.storage.base import CollectionStore, InMemoryCollectionStore
from pyrecon.storage.sqlite import SqliteCollectionStore

__all__ = ["CollectionStore", "InMemoryCollectionStore", "SqliteCollectionStore"]
