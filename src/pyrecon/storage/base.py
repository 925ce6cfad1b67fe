"""Collection store protocol and the in-memory implementation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CollectionStore(Protocol):
    """Minimal key -> blob interface for the persisted collections."""

    def get(self, collection_key: str) -> str | None: ...
    def put(self, collection_key: str, value: str) -> None: ...


class InMemoryCollectionStore:
    """Dict-backed store, used by tests and single-process tools."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, collection_key: str) -> str | None:
        return self._blobs.get(collection_key)

    def put(self, collection_key: str, value: str) -> None:
        self._blobs[collection_key] = value

    def keys(self) -> list[str]:
        return sorted(self._blobs)
