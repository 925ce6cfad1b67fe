from __future__ import annotations

from pathlib import Path

import pytest

from pyrecon.exceptions import ReconStorageError
from pyrecon.storage import CollectionStore, InMemoryCollectionStore, SqliteCollectionStore


def test_backends_satisfy_protocol(tmp_path: Path) -> None:
    sqlite_store = SqliteCollectionStore(tmp_path / "recon.db")
    try:
        assert isinstance(InMemoryCollectionStore(), CollectionStore)
        assert isinstance(sqlite_store, CollectionStore)
    finally:
        sqlite_store.close()


def test_in_memory_store_get_put() -> None:
    store = InMemoryCollectionStore({"sold": "[]"})

    assert store.get("sold") == "[]"
    assert store.get("pending") is None
    store.put("pending", '[{"id": "v-1"}]')
    assert store.get("pending") == '[{"id": "v-1"}]'
    assert store.keys() == ["pending", "sold"]


def test_sqlite_store_persists_across_connections(tmp_path: Path) -> None:
    path = tmp_path / "recon.db"
    store = SqliteCollectionStore(path)
    assert store.get("updatesOverlay") is None
    store.put("updatesOverlay", "{}")
    store.put("updatesOverlay", '{"v-1": {"notes": "x"}}')
    store.close()

    reopened = SqliteCollectionStore(path)
    try:
        assert reopened.get("updatesOverlay") == '{"v-1": {"notes": "x"}}'
    finally:
        reopened.close()


def test_sqlite_store_wraps_errors(tmp_path: Path) -> None:
    store = SqliteCollectionStore(tmp_path / "recon.db")
    store.close()

    with pytest.raises(ReconStorageError):
        store.get("sold")


def test_sqlite_store_unopenable_path(tmp_path: Path) -> None:
    with pytest.raises(ReconStorageError):
        SqliteCollectionStore(tmp_path / "missing" / "recon.db")
