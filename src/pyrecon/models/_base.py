"""Base model, status enum and timestamp type for persisted records.

Every persisted model inherits from :class:`ReconBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase keys of the stored JSON
  blobs map to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
* :meth:`ReconBaseModel.to_wire` producing the JSON-ready camelCase dict
  that is written back to the collection store.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def _parse_epoch(value: Any) -> Any:
    """Accept epoch seconds or milliseconds besides ISO strings."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


def _ensure_tz_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, BeforeValidator(_parse_epoch), AfterValidator(_ensure_tz_aware)]
"""Datetime that is always timezone aware (naive values are taken as UTC)."""


class SectionStatus(StrEnum):
    """Inspection status of one section."""

    NOT_STARTED = "not-started"
    PENDING = "pending"
    NEEDS_ATTENTION = "needs-attention"
    COMPLETED = "completed"

    @classmethod
    def _missing_(cls, value: object) -> SectionStatus:
        # Tolerate "Completed", "needs_attention" and similar spellings;
        # anything else counts as not started.
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.NOT_STARTED


class ReconBaseModel(BaseModel):
    """Base for persisted pyrecon models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        return cleaned

    def to_wire(self, *, exclude_none: bool = True) -> dict[str, Any]:
        """JSON-ready dict using the persisted camelCase keys.

        Pass ``exclude_none=False`` when the dict is merged over another
        record and cleared fields must replace the underlying value.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)
