"""Persisted data models."""

from pyrecon.models._base import ReconBaseModel, SectionStatus, UtcDatetime
from pyrecon.models.notes import TeamNote
from pyrecon.models.vehicle import LocationEntry, VehicleRecord

__all__ = [
    "LocationEntry",
    "ReconBaseModel",
    "SectionStatus",
    "TeamNote",
    "UtcDatetime",
    "VehicleRecord",
]
