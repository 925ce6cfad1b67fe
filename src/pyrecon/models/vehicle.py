"""Vehicle record model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from pyrecon.models._base import ReconBaseModel, SectionStatus, UtcDatetime
from pyrecon.models.notes import TeamNote
from pyrecon.normalize import safe_float, safe_int


class LocationEntry(ReconBaseModel):
    """A location the vehicle was moved away from."""

    location: str
    moved_by: str
    moved_at: UtcDatetime


class VehicleRecord(ReconBaseModel):
    """Canonical per-vehicle view.

    Built from a catalog or ``added`` entry with the ``updatesOverlay``
    snapshot merged on top, or taken as-is from the ``sold`` / ``pending``
    collections.
    """

    id: str
    """Stable identifier, unique across all collections."""
    vin: str = ""
    year: int | None = None
    make: str = ""
    model: str = ""
    trim: str = ""
    mileage: int | None = None
    color: str = ""
    price: float = 0.0
    """Listed price in USD."""
    location: str = ""
    date_acquired: str = ""
    notes: str = ""

    status: dict[str, SectionStatus] = Field(default_factory=dict)
    """Inspection status per section key."""
    team_notes: list[TeamNote] = Field(default_factory=list)
    """Append-only audit trail, oldest first."""

    is_sold: bool = False
    sold_by: str | None = None
    sold_date: UtcDatetime | None = None
    sold_price: float | None = None
    sold_notes: str | None = None

    is_pending: bool = False
    pending_by: str | None = None
    pending_date: UtcDatetime | None = None
    pending_notes: str | None = None

    reactivated_by: str | None = None
    reactivated_date: UtcDatetime | None = None
    reactivated_from: str | None = None
    """``"sold"`` or ``"pending"``, set by the last reactivation."""

    location_history: list[LocationEntry] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        """``"2021 Toyota Camry"`` style name used in notes and logs."""
        parts = [str(self.year) if self.year else "", self.make, self.model]
        return " ".join(part for part in parts if part) or self.id

    @property
    def is_active(self) -> bool:
        return not (self.is_sold or self.is_pending)

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(int(value))
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("id must be non-empty")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {str(key): SectionStatus(status) for key, status in value.items()}

    @field_validator("year", "mileage", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("sold_price", mode="before")
    @classmethod
    def _coerce_optional_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed

    @model_validator(mode="after")
    def _check_lifecycle_flags(self) -> VehicleRecord:
        if self.is_sold and self.is_pending:
            raise ValueError(f"vehicle {self.id} cannot be both sold and pending")
        return self
