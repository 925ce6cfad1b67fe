from __future__ import annotations

from datetime import UTC, datetime
from types import GeneratorType

import pytest

from pyrecon.audit import AuditLog
from pyrecon.engine import ReconEngine
from pyrecon.exceptions import ReconInvalidTransitionError, ReconMissingActorError
from pyrecon.models import TeamNote

from tests.fakes import CountingCollectionStore


def test_append_persists_note(engine: ReconEngine) -> None:
    note = engine.audit.append("v-101", "  Needs new wipers  ", "AB")

    assert note.text == "Needs new wipers"
    assert note.category == "general"
    assert note.is_certified is False
    assert engine.store.get_by_id("v-101").team_notes == [note]


def test_append_keeps_existing_notes_in_order(engine: ReconEngine) -> None:
    first = engine.audit.append("v-101", "First", "AB")
    second = engine.audit.append("v-101", "Second", "CD", category="mechanical")

    notes = engine.store.get_by_id("v-101").team_notes
    assert notes == [first, second]
    assert int(second.id) > int(first.id)
    assert second.timestamp > first.timestamp


def test_note_ids_increase_with_a_frozen_clock(engine: ReconEngine) -> None:
    frozen = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    audit = AuditLog(engine.store, clock=lambda: frozen)

    ids = [int(audit.append("v-102", f"note {n}", "AB").id) for n in range(3)]

    assert ids == sorted(set(ids))
    assert ids[0] == int(frozen.timestamp() * 1000)


def test_note_ids_follow_existing_ids(engine: ReconEngine) -> None:
    existing = [
        TeamNote(
            id="9999999999999",
            text="From the future",
            user_initials="ZZ",
            timestamp=datetime(2026, 1, 1, tzinfo=UTC),
        )
    ]
    note = engine.audit.new_note(text="Later", user_initials="AB", existing=existing)
    assert note.id == "10000000000000"


@pytest.mark.parametrize("text", ["", "   "])
def test_append_rejects_empty_text(engine: ReconEngine, collections: CountingCollectionStore, text: str) -> None:
    with pytest.raises(ValueError, match="non-empty"):
        engine.audit.append("v-101", text, "AB")
    assert collections.writes == []


def test_append_rejects_missing_initials(engine: ReconEngine, collections: CountingCollectionStore) -> None:
    with pytest.raises(ReconMissingActorError):
        engine.audit.append("v-101", "Looks good", "")
    assert collections.writes == []


def test_append_on_sold_vehicle_is_rejected(engine: ReconEngine) -> None:
    engine.lifecycle.mark_sold("v-101", "AB")
    with pytest.raises(ReconInvalidTransitionError):
        engine.audit.append("v-101", "After the sale", "AB")


def test_team_notes_cannot_be_rewritten(engine: ReconEngine) -> None:
    engine.audit.append("v-101", "Original", "AB")
    with pytest.raises(ValueError, match="append-only"):
        engine.store.apply_update("v-101", {"teamNotes": []})


def test_append_cannot_certify(engine: ReconEngine, collections: CountingCollectionStore) -> None:
    with pytest.raises(TypeError):
        engine.audit.append("v-101", "Mechanical verified", "XX", category="mechanical", is_certified=True)  # type: ignore[call-arg]
    assert collections.writes == []


def test_only_engine_notes_are_certified(engine: ReconEngine) -> None:
    engine.audit.append("v-101", "Checked the brakes myself", "XX", category="mechanical")
    engine.status.complete_section("v-101", "mechanical", "AB")
    engine.lifecycle.mark_pending("v-101", "AB")

    record = engine.store.get_by_id("v-101")

    assert [(note.user_initials, note.is_certified) for note in record.team_notes] == [
        ("XX", False),
        ("AB", True),
        ("AB", True),
    ]


def test_append_accepts_configured_section_categories(engine: ReconEngine) -> None:
    detailing = engine.audit.append("v-101", "Clay bar done", "AB", category="detailing")
    blank = engine.audit.append("v-101", "No category", "AB", category="  ")

    assert detailing.category == "detailing"
    assert blank.category == "general"


def test_filter_by_category_is_lazy(engine: ReconEngine) -> None:
    engine.audit.append("v-101", "Brakes at 40%", "AB", category="mechanical")
    engine.audit.append("v-101", "General remark", "AB")
    engine.audit.append("v-101", "Rotors replaced", "CD", category="mechanical")
    record = engine.store.get_by_id("v-101")

    mechanical = AuditLog.filter_by_category(record, "mechanical")

    assert isinstance(mechanical, GeneratorType)
    assert [note.text for note in mechanical] == ["Brakes at 40%", "Rotors replaced"]
    assert list(AuditLog.filter_by_category(record, "photos")) == []


def test_summary_notes(engine: ReconEngine) -> None:
    engine.audit.append("v-102", "Ready for the front line", "AB", category="summary")
    engine.audit.append("v-102", "Unrelated", "AB")

    record = engine.store.get_by_id("v-102")

    assert [note.text for note in AuditLog.summary_notes(record)] == ["Ready for the front line"]
