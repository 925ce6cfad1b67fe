"""Baseline catalog loading."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pyrecon.exceptions import ReconSerializationError, ReconStorageError
from pyrecon.models.vehicle import VehicleRecord

_logger = logging.getLogger(__name__)

_CATALOG_ADAPTER = TypeAdapter(list[VehicleRecord])


def parse_catalog(data: str | bytes, *, source: str = "catalog") -> list[VehicleRecord]:
    """Parse a JSON array of vehicle records.

    Unlike the overlay collections the catalog is not fail-open: a broken
    catalog raises :class:`ReconSerializationError`.
    """
    try:
        records = _CATALOG_ADAPTER.validate_json(data)
    except ValidationError as exc:
        raise ReconSerializationError(f"Invalid vehicle catalog in {source}: {exc}", collection_key=source) from exc

    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise ReconSerializationError(f"Duplicate vehicle id {record.id} in {source}", collection_key=source)
        seen.add(record.id)
    return records


def load_catalog(path: str | Path) -> list[VehicleRecord]:
    """Read the baseline catalog from a JSON file."""
    catalog_path = Path(path)
    try:
        data = catalog_path.read_bytes()
    except OSError as exc:
        raise ReconStorageError(f"Cannot read catalog {catalog_path}: {exc}") from exc
    records = parse_catalog(data, source=str(catalog_path))
    _logger.debug("Loaded %d catalog vehicles from %s", len(records), catalog_path)
    return records
