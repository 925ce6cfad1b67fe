from __future__ import annotations

import pytest

from pyrecon._constants import BASELINE_SECTION_KEYS
from pyrecon.engine import ReconEngine
from pyrecon.exceptions import ReconMissingActorError, ReconNotFoundError
from pyrecon.models import SectionStatus, VehicleRecord
from pyrecon.status import StatusTracker

from tests.fakes import CountingCollectionStore


def test_set_status_persists_single_section(engine: ReconEngine) -> None:
    updated = engine.status.set_status("v-101", "mechanical", "needs-attention")

    assert updated.status["mechanical"] == SectionStatus.NEEDS_ATTENTION
    assert updated.status["emissions"] == SectionStatus.NOT_STARTED
    assert engine.store.get_by_id("v-101").status["mechanical"] == SectionStatus.NEEDS_ATTENTION


def test_set_status_same_value_twice_is_a_redundant_write(
    engine: ReconEngine,
    collections: CountingCollectionStore,
) -> None:
    first = engine.status.set_status("v-101", "photos", SectionStatus.PENDING)
    second = engine.status.set_status("v-101", "photos", SectionStatus.PENDING)

    assert first == second
    assert collections.writes == ["updatesOverlay", "updatesOverlay"]
    assert second.team_notes == []


def test_set_status_accepts_configured_extra_section(engine: ReconEngine) -> None:
    updated = engine.status.set_status("v-101", "detailing", SectionStatus.COMPLETED)
    assert updated.status["detailing"] == SectionStatus.COMPLETED


def test_set_status_rejects_unknown_status_value(engine: ReconEngine, collections: CountingCollectionStore) -> None:
    with pytest.raises(ValueError, match="Unknown section status"):
        engine.status.set_status("v-101", "photos", "done-ish")
    assert collections.writes == []


def test_set_status_missing_vehicle(engine: ReconEngine) -> None:
    with pytest.raises(ReconNotFoundError):
        engine.status.set_status("nope", "photos", SectionStatus.COMPLETED)


def test_complete_section_adds_certified_note(engine: ReconEngine) -> None:
    note = engine.status.complete_section("v-101", "emissions", "AB")

    record = engine.store.get_by_id("v-101")
    assert record.status["emissions"] == SectionStatus.COMPLETED
    assert record.team_notes == [note]
    assert note.text == "Emissions completed and verified."
    assert note.category == "emissions"
    assert note.user_initials == "AB"
    assert note.is_certified is True


def test_complete_cleaned_section_uses_cleaning_label(engine: ReconEngine) -> None:
    note = engine.status.complete_section("v-101", "cleaned", "AB")
    assert note.text == "Cleaning completed and verified."
    assert note.category == "cleaned"


def test_complete_section_requires_initials(engine: ReconEngine, collections: CountingCollectionStore) -> None:
    with pytest.raises(ReconMissingActorError):
        engine.status.complete_section("v-101", "emissions", "")
    assert collections.writes == []
    assert engine.store.get_by_id("v-101").status["emissions"] == SectionStatus.NOT_STARTED


def test_progress_walkthrough(engine: ReconEngine) -> None:
    record = engine.store.get_by_id("v-101")
    assert StatusTracker.compute_progress(record) == 0

    for section in ("emissions", "cosmetic", "mechanical"):
        engine.status.complete_section("v-101", section, "AB")
    record = engine.store.get_by_id("v-101")
    assert StatusTracker.compute_progress(record) == 60
    assert StatusTracker.is_ready_for_sale(record) is False

    for section in ("cleaned", "photos"):
        engine.status.complete_section("v-101", section, "CD")
    record = engine.store.get_by_id("v-101")
    assert StatusTracker.compute_progress(record) == 100
    assert StatusTracker.is_ready_for_sale(record) is True
    assert len(record.team_notes) == 5


@pytest.mark.parametrize(
    "statuses",
    [
        {},
        {"emissions": SectionStatus.COMPLETED},
        {"emissions": SectionStatus.COMPLETED, "photos": SectionStatus.NEEDS_ATTENTION},
        {key: SectionStatus.COMPLETED for key in BASELINE_SECTION_KEYS},
        {key: SectionStatus.PENDING for key in BASELINE_SECTION_KEYS},
    ],
)
def test_ready_for_sale_iff_progress_is_100(statuses: dict[str, SectionStatus]) -> None:
    record = VehicleRecord(id="v-1", status=statuses)
    assert StatusTracker.is_ready_for_sale(record) == (StatusTracker.compute_progress(record) == 100)


def test_section_summary_counts_every_status() -> None:
    record = VehicleRecord(
        id="v-1",
        status={
            "emissions": SectionStatus.COMPLETED,
            "cosmetic": SectionStatus.COMPLETED,
            "photos": SectionStatus.PENDING,
        },
    )

    summary = StatusTracker.section_summary(record)

    assert summary[SectionStatus.COMPLETED] == 2
    assert summary[SectionStatus.PENDING] == 1
    assert summary[SectionStatus.NEEDS_ATTENTION] == 0
