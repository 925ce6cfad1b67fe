"""Lifecycle transitions between Active, Pending and Sold."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pyrecon._constants import CollectionKey, format_price
from pyrecon.audit import AuditLog
from pyrecon.models.vehicle import VehicleRecord
from pyrecon.normalize import require_actor, safe_float, safe_str
from pyrecon.state.policy import LifecycleState, ensure_transition, lifecycle_state
from pyrecon.state.store import RecordStore

_logger = logging.getLogger(__name__)

_SNAPSHOT_COLLECTIONS: dict[LifecycleState, CollectionKey] = {
    LifecycleState.SOLD: CollectionKey.SOLD,
    LifecycleState.PENDING: CollectionKey.PENDING,
}

_CLEARED_ON_REACTIVATE: dict[str, Any] = {
    "is_sold": False,
    "sold_by": None,
    "sold_date": None,
    "sold_price": None,
    "sold_notes": None,
    "is_pending": False,
    "pending_by": None,
    "pending_date": None,
    "pending_notes": None,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _with(record: VehicleRecord, update: dict[str, Any]) -> VehicleRecord:
    data = record.model_dump()
    data.update(update)
    return VehicleRecord.model_validate(data)


class LifecycleManager:
    """Moves vehicles between the overlay and the sold/pending collections.

    Each transition performs two collection writes without a transaction:
    the source entry is removed first, then the target is written. If the
    second write fails the vehicle is missing from both until it is
    written again; this is logged and the error re-raised.
    """

    def __init__(
        self,
        store: RecordStore,
        audit: AuditLog,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._audit = audit
        self._clock = clock

    @staticmethod
    def state_of(record: VehicleRecord) -> LifecycleState:
        return lifecycle_state(record)

    def mark_sold(
        self,
        vehicle_id: str,
        actor: str,
        price: float | str | None = None,
        notes: str | None = None,
    ) -> VehicleRecord:
        """Move an active vehicle to ``sold``; price defaults to the listed price."""
        initials = require_actor(actor, operation="mark_sold")
        record = self._store.get_by_id(vehicle_id)
        ensure_transition(record, LifecycleState.SOLD)

        sold_price = safe_float(price)
        if sold_price is None:
            sold_price = record.price
        sold_notes = safe_str(notes)
        note = self._audit.new_note(
            text=f"Vehicle sold for {format_price(sold_price)}. {sold_notes or ''}",
            user_initials=initials,
            is_certified=True,
            existing=record.team_notes,
        )
        snapshot = _with(
            record,
            {
                "is_sold": True,
                "sold_by": initials,
                "sold_date": self._clock(),
                "sold_price": sold_price,
                "sold_notes": sold_notes,
                "team_notes": [*record.team_notes, note],
            },
        )
        self._retire(snapshot, LifecycleState.SOLD)
        _logger.info("Vehicle id=%s sold by %s for %s", vehicle_id, initials, format_price(sold_price))
        return snapshot

    def mark_pending(self, vehicle_id: str, actor: str, notes: str | None = None) -> VehicleRecord:
        """Move an active vehicle to ``pending``."""
        initials = require_actor(actor, operation="mark_pending")
        record = self._store.get_by_id(vehicle_id)
        ensure_transition(record, LifecycleState.PENDING)

        pending_notes = safe_str(notes)
        note = self._audit.new_note(
            text=f"Vehicle moved to pending status. {pending_notes or ''}",
            user_initials=initials,
            is_certified=True,
            existing=record.team_notes,
        )
        snapshot = _with(
            record,
            {
                "is_pending": True,
                "pending_by": initials,
                "pending_date": self._clock(),
                "pending_notes": pending_notes,
                "team_notes": [*record.team_notes, note],
            },
        )
        self._retire(snapshot, LifecycleState.PENDING)
        _logger.info("Vehicle id=%s marked pending by %s", vehicle_id, initials)
        return snapshot

    def reactivate(self, vehicle_id: str, actor: str) -> VehicleRecord:
        """Return a sold or pending vehicle to the active overlay."""
        initials = require_actor(actor, operation="reactivate")
        record = self._store.get_by_id(vehicle_id)
        previous = ensure_transition(record, LifecycleState.ACTIVE)

        note = self._audit.new_note(
            text=f"Vehicle reactivated from {previous} status.",
            user_initials=initials,
            is_certified=True,
            existing=record.team_notes,
        )
        reactivated = _with(
            record,
            {
                **_CLEARED_ON_REACTIVATE,
                "reactivated_by": initials,
                "reactivated_date": self._clock(),
                "reactivated_from": previous.value,
                "team_notes": [*record.team_notes, note],
            },
        )

        # Any copy left in a snapshot collection would hide the overlay entry.
        source = _SNAPSHOT_COLLECTIONS[previous]
        others = [key for key in _SNAPSHOT_COLLECTIONS.values() if key != source]
        cleared = [key for key in (source, *others) if self._store._remove_snapshot(key, vehicle_id)]
        try:
            self._store._put_overlay(reactivated)
        except Exception:
            if cleared:
                _logger.warning(
                    "Vehicle id=%s removed from %s but not restored to %s",
                    vehicle_id,
                    ", ".join(cleared),
                    CollectionKey.UPDATES_OVERLAY,
                )
            raise
        _logger.info("Vehicle id=%s reactivated from %s by %s", vehicle_id, previous, initials)
        return reactivated

    def _retire(self, snapshot: VehicleRecord, target: LifecycleState) -> None:
        destination = _SNAPSHOT_COLLECTIONS[target]
        removed = self._store._remove_overlay(snapshot.id)
        try:
            self._store._push_snapshot(destination, snapshot)
        except Exception:
            if removed:
                _logger.warning(
                    "Vehicle id=%s removed from %s but not written to %s",
                    snapshot.id,
                    CollectionKey.UPDATES_OVERLAY,
                    destination,
                )
            raise
