"""Change notifications.

Every persisted collection write produces one of these. Observers are
expected to reload the merged view rather than interpret the payload.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ChangeNotification(BaseModel):
    """A collection blob was replaced."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    collection_key: str = Field(..., description="Name of the collection that was written")
    new_serialized_value: str = Field(..., description="The blob exactly as persisted")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    origin: str = Field(default="", description="Broadcaster instance that produced the change")

    @field_validator("collection_key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        key = value.strip()
        if not key:
            raise ValueError("collection_key must be non-empty")
        return key

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
