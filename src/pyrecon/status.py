"""Per-section inspection status and progress."""

from __future__ import annotations

import logging
from collections import Counter

from pyrecon._constants import section_label
from pyrecon.audit import AuditLog
from pyrecon.models._base import SectionStatus
from pyrecon.models.notes import TeamNote
from pyrecon.models.vehicle import VehicleRecord
from pyrecon.normalize import require_actor, safe_str
from pyrecon.state.store import RecordStore

_logger = logging.getLogger(__name__)

_STATUS_VALUES: frozenset[str] = frozenset(member.value for member in SectionStatus)


def _parse_status(value: SectionStatus | str) -> SectionStatus:
    # SectionStatus() is lenient for persisted data; caller input is not.
    if isinstance(value, SectionStatus):
        return value
    if value not in _STATUS_VALUES:
        raise ValueError(f"Unknown section status: {value!r}")
    return SectionStatus(value)


class StatusTracker:
    """Reads and writes inspection status through the record store."""

    def __init__(self, store: RecordStore, audit: AuditLog) -> None:
        self._store = store
        self._audit = audit

    def set_status(self, vehicle_id: str, section_key: str, status: SectionStatus | str) -> VehicleRecord:
        """Set one section's status. Repeating the same value rewrites the overlay."""
        key = safe_str(section_key)
        if key is None:
            raise ValueError("section_key must be non-empty")
        new_status = _parse_status(status)
        record = self._store.get_by_id(vehicle_id)
        updated = self._store.apply_update(vehicle_id, {"status": {**record.status, key: new_status}})
        _logger.debug("Vehicle id=%s section=%s status=%s", vehicle_id, key, new_status)
        return updated

    def complete_section(self, vehicle_id: str, section_key: str, user_initials: str) -> TeamNote:
        """Mark a section completed and record a certified note for it."""
        initials = require_actor(user_initials, operation="complete_section")
        self.set_status(vehicle_id, section_key, SectionStatus.COMPLETED)
        key = section_key.strip()
        return self._audit._append_certified(
            vehicle_id,
            f"{section_label(key)} completed and verified.",
            initials,
            category=key,
        )

    @staticmethod
    def compute_progress(record: VehicleRecord) -> float:
        """Percentage of sections completed; ``0.0`` when there are none."""
        if not record.status:
            return 0.0
        completed = sum(1 for value in record.status.values() if value == SectionStatus.COMPLETED)
        return 100 * completed / len(record.status)

    @staticmethod
    def is_ready_for_sale(record: VehicleRecord) -> bool:
        return bool(record.status) and all(value == SectionStatus.COMPLETED for value in record.status.values())

    @staticmethod
    def section_summary(record: VehicleRecord) -> dict[SectionStatus, int]:
        """Number of sections in each status (every status is present)."""
        counts = Counter(record.status.values())
        return {member: counts.get(member, 0) for member in SectionStatus}
