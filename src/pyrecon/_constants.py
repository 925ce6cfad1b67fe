"""Shared constants: collection keys, section keys, note categories."""

from __future__ import annotations

from enum import StrEnum


class CollectionKey(StrEnum):
    """Names of the persisted collection blobs."""

    ADDED = "added"
    UPDATES_OVERLAY = "updatesOverlay"
    SOLD = "sold"
    PENDING = "pending"


# Sections every vehicle is inspected on. Configuration may add more.
BASELINE_SECTION_KEYS: tuple[str, ...] = (
    "emissions",
    "cosmetic",
    "mechanical",
    "cleaned",
    "photos",
)

GENERAL_CATEGORY = "general"
SUMMARY_CATEGORY = "summary"

# Display labels that differ from the capitalised key.
SECTION_LABELS: dict[str, str] = {
    "cleaned": "Cleaning",
}

# Fields only lifecycle transitions may change.
LIFECYCLE_FIELDS: frozenset[str] = frozenset(
    {
        "is_sold",
        "sold_by",
        "sold_date",
        "sold_price",
        "sold_notes",
        "is_pending",
        "pending_by",
        "pending_date",
        "pending_notes",
        "reactivated_by",
        "reactivated_date",
        "reactivated_from",
    }
)


def section_label(section_key: str) -> str:
    """Human-readable label for a section key (``"cleaned"`` -> ``"Cleaning"``)."""
    label = SECTION_LABELS.get(section_key)
    if label is not None:
        return label
    words = section_key.replace("-", " ").replace("_", " ").strip()
    return words[:1].upper() + words[1:]


def format_price(value: float) -> str:
    """Format a USD amount without cents when they are zero (``$25,000``)."""
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"
