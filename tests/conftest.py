"""Shared fixtures: deterministic clock, write-counting store, small catalog."""

from __future__ import annotations

import pytest

from pyrecon.engine import ReconEngine
from pyrecon.models import VehicleRecord
from tests.fakes import CountingCollectionStore, StepClock, make_vehicle


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def collections() -> CountingCollectionStore:
    return CountingCollectionStore()


@pytest.fixture()
def catalog() -> list[VehicleRecord]:
    return [
        make_vehicle("v-101"),
        make_vehicle("v-102", year=2019, make="Honda", model="Civic", price=18500.5, status={}),
    ]


@pytest.fixture()
def engine(collections: CountingCollectionStore, catalog: list[VehicleRecord], clock: StepClock) -> ReconEngine:
    return ReconEngine(collections=collections, catalog=catalog, clock=clock)
