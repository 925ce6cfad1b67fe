"""Record store: merges the catalog and overlay collections per vehicle.

This is the only component allowed to write the persisted collections.
Writes operate on the raw JSON entries and touch only the entry being
changed, so an entry that fails validation is carried along untouched
instead of being dropped by an unrelated write.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pyrecon._constants import LIFECYCLE_FIELDS, CollectionKey
from pyrecon.broadcast import ChangeBroadcaster
from pyrecon.exceptions import ReconInvalidTransitionError, ReconNotFoundError, ReconSerializationError
from pyrecon.models._base import SectionStatus
from pyrecon.models.notes import TeamNote
from pyrecon.models.vehicle import LocationEntry, VehicleRecord
from pyrecon.normalize import require_actor, safe_str
from pyrecon.state.policy import lifecycle_state
from pyrecon.storage.base import CollectionStore

_logger = logging.getLogger(__name__)

_ALIAS_TO_FIELD: dict[str, str] = {
    (info.alias or name): name for name, info in VehicleRecord.model_fields.items()
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _entry_id(entry: Any) -> str | None:
    if not isinstance(entry, dict):
        return None
    value = entry.get("id")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return safe_str(value)


def _decode(collection_key: str, blob: str, expected: type) -> Any:
    try:
        value = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise ReconSerializationError(
            f"Collection {collection_key} is not valid JSON: {exc}",
            collection_key=collection_key,
        ) from exc
    if not isinstance(value, expected):
        raise ReconSerializationError(
            f"Collection {collection_key} must be a JSON {expected.__name__}, got {type(value).__name__}",
            collection_key=collection_key,
        )
    return value


def _field_updates(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Translate camelCase or snake_case keys into model field names."""
    updates: dict[str, Any] = {}
    for key, value in fields.items():
        name = key if key in VehicleRecord.model_fields else _ALIAS_TO_FIELD.get(key)
        if name is None:
            raise ValueError(f"Unknown vehicle field: {key}")
        updates[name] = value
    return updates


class RecordStore:
    """Canonical per-vehicle view over a :class:`CollectionStore`.

    The baseline catalog is immutable and held in memory; ``added``,
    ``updatesOverlay``, ``sold`` and ``pending`` are read from the
    collection store on every call so that changes made by other writers
    are always visible.
    """

    def __init__(
        self,
        collections: CollectionStore,
        *,
        catalog: Iterable[VehicleRecord] = (),
        broadcaster: ChangeBroadcaster | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._collections = collections
        self._catalog: tuple[VehicleRecord, ...] = tuple(catalog)
        self._broadcaster = broadcaster or ChangeBroadcaster()
        self._clock = clock

    @property
    def broadcaster(self) -> ChangeBroadcaster:
        return self._broadcaster

    # ------------------------------------------------------------------
    # Raw collection access
    # ------------------------------------------------------------------

    def _raw_list(self, key: CollectionKey) -> list[Any]:
        blob = self._collections.get(key)
        if blob is None or not blob.strip():
            return []
        try:
            return list(_decode(key, blob, list))
        except ReconSerializationError:
            _logger.warning("Treating collection %s as empty", key, exc_info=True)
            return []

    def _raw_map(self, key: CollectionKey) -> dict[str, Any]:
        blob = self._collections.get(key)
        if blob is None or not blob.strip():
            return {}
        try:
            return dict(_decode(key, blob, dict))
        except ReconSerializationError:
            _logger.warning("Treating collection %s as empty", key, exc_info=True)
            return {}

    def _write(self, key: CollectionKey, value: list[Any] | dict[str, Any]) -> None:
        blob = json.dumps(value)
        self._collections.put(key, blob)
        _logger.debug("Wrote collection %s (%d entries)", key, len(value))
        self._broadcaster.notify(key, blob)

    @staticmethod
    def _validate(entry: Any, key: CollectionKey) -> VehicleRecord | None:
        try:
            return VehicleRecord.model_validate(entry)
        except ValidationError:
            _logger.warning("Skipping malformed entry id=%s in %s", _entry_id(entry), key, exc_info=True)
            return None

    def _records(self, key: CollectionKey) -> list[VehicleRecord]:
        records: list[VehicleRecord] = []
        for entry in self._raw_list(key):
            record = self._validate(entry, key)
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _merge_overlay(base: VehicleRecord, patch: Any) -> VehicleRecord:
        if not isinstance(patch, dict):
            return base
        merged = base.to_wire()
        merged.update(copy.deepcopy(patch))
        merged["id"] = base.id
        try:
            return VehicleRecord.model_validate(merged)
        except ValidationError:
            _logger.warning("Ignoring malformed overlay for id=%s", base.id, exc_info=True)
            return base

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_all(self) -> list[VehicleRecord]:
        """Return every vehicle once: active records, then sold, then pending.

        An id found in ``sold`` or ``pending`` is suppressed from the
        active set; a sold snapshot wins over a pending one and the newest
        snapshot wins within a collection.
        """
        retired: dict[str, VehicleRecord] = {}
        for record in self._records(CollectionKey.SOLD):
            retired.setdefault(record.id, record)
        for record in self._records(CollectionKey.PENDING):
            retired.setdefault(record.id, record)

        overlay = self._raw_map(CollectionKey.UPDATES_OVERLAY)
        active: list[VehicleRecord] = []
        seen: set[str] = set()

        for base in [*self._records(CollectionKey.ADDED), *self._catalog]:
            if base.id in seen:
                continue
            seen.add(base.id)
            if base.id in retired:
                continue
            active.append(self._merge_overlay(base, overlay.get(base.id)))

        # Overlay snapshots without a catalog entry (e.g. reactivated
        # vehicles whose catalog row is gone) are complete records.
        for vehicle_id, entry in overlay.items():
            if vehicle_id in seen or vehicle_id in retired or not isinstance(entry, dict):
                continue
            record = self._validate({**entry, "id": vehicle_id}, CollectionKey.UPDATES_OVERLAY)
            if record is not None:
                seen.add(vehicle_id)
                active.append(record)

        return [*active, *retired.values()]

    def get_by_id(self, vehicle_id: str) -> VehicleRecord:
        for record in self.load_all():
            if record.id == vehicle_id:
                return record
        raise ReconNotFoundError(vehicle_id)

    def active_records(self) -> list[VehicleRecord]:
        return [record for record in self.load_all() if record.is_active]

    def sold_records(self) -> list[VehicleRecord]:
        return self._records(CollectionKey.SOLD)

    def pending_records(self) -> list[VehicleRecord]:
        return self._records(CollectionKey.PENDING)

    def collection_ids(self, key: CollectionKey) -> set[str]:
        """Ids currently stored under *key* (raw, without validation)."""
        if key == CollectionKey.UPDATES_OVERLAY:
            return set(self._raw_map(key))
        return {vid for vid in map(_entry_id, self._raw_list(key)) if vid is not None}

    # ------------------------------------------------------------------
    # Overlay writes
    # ------------------------------------------------------------------

    def _editable(self, vehicle_id: str) -> VehicleRecord:
        current = self.get_by_id(vehicle_id)
        if not current.is_active:
            state = lifecycle_state(current)
            raise ReconInvalidTransitionError(
                f"Vehicle {vehicle_id} is {state} and cannot be edited",
                vehicle_id=vehicle_id,
                current_state=state.value,
            )
        return current

    def apply_update(self, vehicle_id: str, fields: Mapping[str, Any]) -> VehicleRecord:
        """Merge *fields* onto the canonical record and persist it to the overlay.

        Keys may be snake_case field names or their camelCase aliases.
        Lifecycle fields and ``id`` can only change through the lifecycle
        manager, and team notes only through the audit log. A field set to
        ``None`` is cleared in the overlay, hiding the catalog value.
        """
        current = self._editable(vehicle_id)
        updates = _field_updates(fields)
        locked = sorted(set(updates) & (LIFECYCLE_FIELDS | {"id"}))
        if locked:
            raise ReconInvalidTransitionError(
                f"Fields {', '.join(locked)} can only change through a lifecycle transition",
                vehicle_id=vehicle_id,
                current_state=lifecycle_state(current).value,
            )
        if "team_notes" in updates:
            raise ValueError(f"Team notes of vehicle {vehicle_id} are append-only; add them through the audit log")

        data = current.model_dump()
        data.update(updates)
        updated = VehicleRecord.model_validate(data)
        self._put_overlay(updated)
        return updated

    def _append_note(self, vehicle_id: str, note: TeamNote) -> VehicleRecord:
        # Only the audit log calls this; it decides which notes are certified.
        current = self._editable(vehicle_id)
        updated = current.model_copy(update={"team_notes": [*current.team_notes, note]})
        self._put_overlay(updated)
        return updated

    # The writes below are composed by the lifecycle manager. They bypass
    # the edit rules of apply_update and are not part of the public API.

    def _put_overlay(self, record: VehicleRecord) -> None:
        overlay = self._raw_map(CollectionKey.UPDATES_OVERLAY)
        overlay[record.id] = record.to_wire(exclude_none=False)
        self._write(CollectionKey.UPDATES_OVERLAY, overlay)

    def _remove_overlay(self, vehicle_id: str) -> bool:
        overlay = self._raw_map(CollectionKey.UPDATES_OVERLAY)
        if vehicle_id not in overlay:
            return False
        del overlay[vehicle_id]
        self._write(CollectionKey.UPDATES_OVERLAY, overlay)
        return True

    def _push_snapshot(self, key: CollectionKey, record: VehicleRecord) -> None:
        entries = [entry for entry in self._raw_list(key) if _entry_id(entry) != record.id]
        entries.insert(0, record.to_wire())
        self._write(key, entries)

    def _remove_snapshot(self, key: CollectionKey, vehicle_id: str) -> bool:
        entries = self._raw_list(key)
        kept = [entry for entry in entries if _entry_id(entry) != vehicle_id]
        if len(kept) == len(entries):
            return False
        self._write(key, kept)
        return True

    # ------------------------------------------------------------------
    # Catalog additions and field helpers
    # ------------------------------------------------------------------

    def add_vehicle(self, record: VehicleRecord) -> VehicleRecord:
        """Register a vehicle that is not part of the baseline catalog."""
        if not record.is_active:
            raise ValueError(f"Vehicle {record.id} must be active when added")
        if any(existing.id == record.id for existing in self.load_all()):
            raise ValueError(f"Vehicle {record.id} already exists")
        entries = self._raw_list(CollectionKey.ADDED)
        entries.insert(0, record.to_wire())
        self._write(CollectionKey.ADDED, entries)
        _logger.info("Added vehicle id=%s (%s)", record.id, record.display_name)
        return record

    def relocate(self, vehicle_id: str, new_location: str, actor: str) -> VehicleRecord:
        """Move a vehicle, recording the previous location in its history."""
        initials = require_actor(actor, operation="relocate")
        location = safe_str(new_location)
        if location is None:
            raise ValueError("new_location must be non-empty")

        current = self.get_by_id(vehicle_id)
        if current.location == location:
            return current

        history = list(current.location_history)
        if current.location:
            history.append(LocationEntry(location=current.location, moved_by=initials, moved_at=self._clock()))
        return self.apply_update(vehicle_id, {"location": location, "location_history": history})

    # ------------------------------------------------------------------
    # Section initialization
    # ------------------------------------------------------------------

    def ensure_section_statuses(self, record: VehicleRecord, section_keys: Sequence[str]) -> VehicleRecord:
        """Make sure every key in *section_keys* has a status entry.

        Missing keys start as ``not-started`` and the change is persisted
        once; a record that already has every key is returned unchanged
        without a write. Sold and pending records are frozen, so they get
        an in-memory copy only.
        """
        keys = list(dict.fromkeys(key for key in section_keys if key))
        if all(key in record.status for key in keys):
            return record

        if not record.is_active:
            status = dict(record.status)
            for key in keys:
                status.setdefault(key, SectionStatus.NOT_STARTED)
            return record.model_copy(update={"status": status})

        current = self.get_by_id(record.id)
        missing = [key for key in keys if key not in current.status]
        if not missing:
            return current

        status = dict(current.status)
        for key in missing:
            status[key] = SectionStatus.NOT_STARTED
        _logger.debug("Initializing sections %s for vehicle id=%s", missing, record.id)
        return self.apply_update(record.id, {"status": status})

    def ensure_all_section_statuses(self, section_keys: Sequence[str]) -> int:
        """Initialize missing sections on every active vehicle; returns the write count."""
        written = 0
        for record in self.active_records():
            if all(key in record.status for key in section_keys if key):
                continue
            self.ensure_section_statuses(record, section_keys)
            written += 1
        _logger.info("Initialized sections on %d vehicle(s)", written)
        return written
