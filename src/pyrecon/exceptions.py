"""Custom exception hierarchy for pyrecon."""

from __future__ import annotations


class ReconError(Exception):
    """Base exception for all pyrecon errors."""


class ReconConfigError(ReconError):
    """Invalid or missing configuration."""


class ReconNotFoundError(ReconError):
    """Vehicle id is absent from every collection and the catalog."""

    def __init__(self, vehicle_id: str) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle {vehicle_id!r} not found")


class ReconInvalidTransitionError(ReconError):
    """A mutation violates the lifecycle state machine.

    Raised for transitions that do not exist (e.g. Pending -> Sold), for
    repeated transitions (selling a sold vehicle) and for overlay edits on
    records that are frozen in the Sold or Pending state.
    """

    def __init__(
        self,
        message: str,
        *,
        vehicle_id: str = "",
        current_state: str = "",
        target_state: str = "",
    ) -> None:
        self.vehicle_id = vehicle_id
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


class ReconMissingActorError(ReconError):
    """A mutating operation was called without actor initials."""


class ReconStorageError(ReconError):
    """The collection backend failed to read or write a blob."""


class ReconSerializationError(ReconError):
    """A persisted collection blob could not be parsed.

    The record store catches this at its boundary and treats the collection
    as empty, so callers normally only see it from :func:`load_catalog`.
    """

    def __init__(self, message: str, *, collection_key: str = "") -> None:
        self.collection_key = collection_key
        super().__init__(message)
