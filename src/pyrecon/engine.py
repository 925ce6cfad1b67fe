"""High-level entry point wiring the engine components together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from pyrecon._mqtt import MqttChangeRelay
from pyrecon.audit import AuditLog
from pyrecon.broadcast import ChangeBroadcaster
from pyrecon.catalog import load_catalog
from pyrecon.config import ReconConfig
from pyrecon.lifecycle import LifecycleManager
from pyrecon.models.vehicle import VehicleRecord
from pyrecon.state.store import RecordStore
from pyrecon.status import StatusTracker
from pyrecon.storage.base import CollectionStore, InMemoryCollectionStore
from pyrecon.storage.sqlite import SqliteCollectionStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReconEngine:
    """Vehicle record, inspection and lifecycle engine.

    Usage::

        with ReconEngine(ReconConfig.from_env()) as engine:
            engine.refresh_sections()
            engine.status.complete_section("v-101", "emissions", "AB")
            engine.lifecycle.mark_sold("v-101", "AB")
    """

    def __init__(
        self,
        config: ReconConfig | None = None,
        *,
        collections: CollectionStore | None = None,
        catalog: Iterable[VehicleRecord] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or ReconConfig()
        self._owns_collections = collections is None
        if collections is None:
            if self._config.db_path:
                collections = SqliteCollectionStore(self._config.db_path)
            else:
                collections = InMemoryCollectionStore()
        if catalog is None:
            catalog = load_catalog(self._config.catalog_path) if self._config.catalog_path else ()

        self._collections = collections
        self.broadcaster = ChangeBroadcaster()
        self.store = RecordStore(collections, catalog=catalog, broadcaster=self.broadcaster, clock=clock)
        self.audit = AuditLog(self.store, clock=clock)
        self.status = StatusTracker(self.store, self.audit)
        self.lifecycle = LifecycleManager(self.store, self.audit, clock=clock)
        self._relay: MqttChangeRelay | None = None

    @property
    def config(self) -> ReconConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> ReconEngine:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def start(self) -> None:
        """Start the MQTT relay when it is enabled in the configuration."""
        if not self._config.mqtt.enabled or self._relay is not None:
            return
        relay = MqttChangeRelay(self.broadcaster, self._config.mqtt)
        relay.start()
        self._relay = relay

    def close(self) -> None:
        if self._relay is not None:
            self._relay.stop()
            self._relay = None
        if self._owns_collections and isinstance(self._collections, SqliteCollectionStore):
            self._collections.close()

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def refresh_sections(self) -> int:
        """Initialize the configured sections on every active vehicle.

        Call once at startup and again whenever the section configuration
        changes.
        """
        return self.store.ensure_all_section_statuses(self._config.section_keys)

    def vehicle(self, vehicle_id: str) -> VehicleRecord:
        """Fetch one vehicle with the configured sections filled in."""
        record = self.store.get_by_id(vehicle_id)
        return self.store.ensure_section_statuses(record, self._config.section_keys)
