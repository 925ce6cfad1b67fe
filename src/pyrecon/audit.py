"""Append-only audit log of team notes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime

from pyrecon._constants import GENERAL_CATEGORY, SUMMARY_CATEGORY
from pyrecon.models.notes import TeamNote
from pyrecon.models.vehicle import VehicleRecord
from pyrecon.normalize import require_actor, safe_str
from pyrecon.state.store import RecordStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuditLog:
    """Creates team notes and appends them to a vehicle's trail.

    Note ids are epoch milliseconds, bumped when needed so they strictly
    increase per vehicle and per log instance.
    """

    def __init__(self, store: RecordStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock
        self._last_id = 0

    def _next_id(self, now: datetime, existing: Sequence[TeamNote]) -> str:
        floor = self._last_id
        for note in existing:
            if note.id.isdigit():
                floor = max(floor, int(note.id))
        candidate = int(now.timestamp() * 1000)
        if candidate <= floor:
            candidate = floor + 1
        self._last_id = candidate
        return str(candidate)

    def new_note(
        self,
        *,
        text: str,
        user_initials: str,
        category: str = GENERAL_CATEGORY,
        is_certified: bool = False,
        existing: Sequence[TeamNote] = (),
    ) -> TeamNote:
        """Build a note with a fresh id and timestamp without persisting it.

        Lifecycle transitions use this to embed their note in the snapshot
        they write.
        """
        initials = require_actor(user_initials, operation="add note")
        body = safe_str(text)
        if body is None:
            raise ValueError("note text must be non-empty")
        now = self._clock()
        return TeamNote(
            id=self._next_id(now, existing),
            text=body,
            user_initials=initials,
            timestamp=now,
            category=safe_str(category) or GENERAL_CATEGORY,
            is_certified=is_certified,
        )

    def append(
        self,
        vehicle_id: str,
        text: str,
        user_initials: str,
        *,
        category: str = GENERAL_CATEGORY,
    ) -> TeamNote:
        """Append an uncertified note to the vehicle's trail and return it.

        *category* is ``general``, ``summary`` or a section key. Section
        keys come from configuration, so any non-blank category is
        accepted; a blank one falls back to ``general``.
        """
        return self._persist(vehicle_id, text, user_initials, category=category, is_certified=False)

    def _append_certified(self, vehicle_id: str, text: str, user_initials: str, *, category: str) -> TeamNote:
        # Reserved for engine-generated notes (section completion).
        return self._persist(vehicle_id, text, user_initials, category=category, is_certified=True)

    def _persist(
        self,
        vehicle_id: str,
        text: str,
        user_initials: str,
        *,
        category: str,
        is_certified: bool,
    ) -> TeamNote:
        require_actor(user_initials, operation="add note")
        record = self._store.get_by_id(vehicle_id)
        note = self.new_note(
            text=text,
            user_initials=user_initials,
            category=category,
            is_certified=is_certified,
            existing=record.team_notes,
        )
        self._store._append_note(vehicle_id, note)
        _logger.debug("Appended note id=%s category=%s to vehicle id=%s", note.id, note.category, vehicle_id)
        return note

    @staticmethod
    def filter_by_category(record: VehicleRecord, category: str) -> Iterator[TeamNote]:
        return (note for note in record.team_notes if note.category == category)

    @staticmethod
    def summary_notes(record: VehicleRecord) -> Iterator[TeamNote]:
        return AuditLog.filter_by_category(record, SUMMARY_CATEGORY)
