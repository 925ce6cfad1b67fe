"""Team note model."""

from __future__ import annotations

from pydantic import field_validator

from pyrecon._constants import GENERAL_CATEGORY
from pyrecon.models._base import ReconBaseModel, UtcDatetime


class TeamNote(ReconBaseModel):
    """One entry of a vehicle's append-only audit trail.

    ``is_certified`` marks notes generated by the engine from a verified
    section completion or a lifecycle transition.
    """

    id: str
    text: str
    user_initials: str
    timestamp: UtcDatetime
    category: str = GENERAL_CATEGORY
    is_certified: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Older blobs stored numeric ids.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

