"""Lifecycle state machine.

Active -> Pending, Active -> Sold, Pending -> Active and Sold -> Active are
the only legal moves; there is no Pending <-> Sold edge.
"""

from __future__ import annotations

from enum import StrEnum

from pyrecon.exceptions import ReconInvalidTransitionError
from pyrecon.models.vehicle import VehicleRecord


class LifecycleState(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"


_ALLOWED_TRANSITIONS: frozenset[tuple[LifecycleState, LifecycleState]] = frozenset(
    {
        (LifecycleState.ACTIVE, LifecycleState.PENDING),
        (LifecycleState.ACTIVE, LifecycleState.SOLD),
        (LifecycleState.PENDING, LifecycleState.ACTIVE),
        (LifecycleState.SOLD, LifecycleState.ACTIVE),
    }
)


def lifecycle_state(record: VehicleRecord) -> LifecycleState:
    if record.is_sold:
        return LifecycleState.SOLD
    if record.is_pending:
        return LifecycleState.PENDING
    return LifecycleState.ACTIVE


def is_transition_allowed(current: LifecycleState, target: LifecycleState) -> bool:
    return (current, target) in _ALLOWED_TRANSITIONS


def ensure_transition(record: VehicleRecord, target: LifecycleState) -> LifecycleState:
    """Return the record's current state, or raise if *target* is unreachable."""
    current = lifecycle_state(record)
    if not is_transition_allowed(current, target):
        raise ReconInvalidTransitionError(
            f"Vehicle {record.id} cannot move from {current} to {target}",
            vehicle_id=record.id,
            current_state=current.value,
            target_state=target.value,
        )
    return current
