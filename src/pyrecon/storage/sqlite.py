"""Collection store backed by a single SQLite table."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from pyrecon.exceptions import ReconStorageError

_logger = logging.getLogger(__name__)

_CREATE_SQL = """\
CREATE TABLE IF NOT EXISTS collections (
    collection_key TEXT PRIMARY KEY,
    value          TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

_UPSERT_SQL = (
    "INSERT INTO collections (collection_key, value, updated_at) VALUES (?, ?, ?) "
    "ON CONFLICT(collection_key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at"
)


class SqliteCollectionStore:
    """Thread-safe blob store; one row per collection key.

    The connection is shared with the MQTT relay's network thread, so access
    is serialized with a lock. Each ``put`` commits on its own.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._path = str(path)
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(self._path, check_same_thread=False)
            with self._lock:
                self._conn.executescript(_CREATE_SQL)
        except sqlite3.Error as exc:
            raise ReconStorageError(f"Cannot open collection database {self._path}: {exc}") from exc
        _logger.debug("Opened collection database path=%s", self._path)

    def get(self, collection_key: str) -> str | None:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT value FROM collections WHERE collection_key = ?",
                    (collection_key,),
                ).fetchone()
            except sqlite3.Error as exc:
                raise ReconStorageError(f"Failed to read collection {collection_key}: {exc}") from exc
        return None if row is None else str(row[0])

    def put(self, collection_key: str, value: str) -> None:
        now_iso = datetime.now(UTC).isoformat()
        with self._lock:
            try:
                self._conn.execute(_UPSERT_SQL, (collection_key, value, now_iso))
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise ReconStorageError(f"Failed to write collection {collection_key}: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()
