#!/usr/bin/env python3
"""Dump the merged vehicle inventory.

Prints every vehicle once with its lifecycle state, inspection progress
and per-section status, reading the same collections the engine uses.

Usage
-----
::

    export RECON_DB_PATH=/var/lib/recon.db
    export RECON_CATALOG_PATH=catalog.json
    python scripts/dump_inventory.py

Options::

    --db FILE            SQLite collection database (overrides RECON_DB_PATH)
    --catalog FILE       Baseline catalog JSON (overrides RECON_CATALOG_PATH)
    --json               Output as machine-readable JSON
    --notes              Include team notes
    -v, --verbose        Debug logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyrecon import ReconConfig, ReconEngine, ReconError, SectionStatus, StatusTracker, VehicleRecord  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _with_sections(record: VehicleRecord, section_keys: tuple[str, ...]) -> VehicleRecord:
    # Read-only view: missing sections are shown without being persisted.
    status = dict(record.status)
    for key in section_keys:
        status.setdefault(key, SectionStatus.NOT_STARTED)
    return record.model_copy(update={"status": status})


def _as_dict(engine: ReconEngine, record: VehicleRecord, include_notes: bool) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": record.id,
        "name": record.display_name,
        "state": engine.lifecycle.state_of(record).value,
        "progress": round(StatusTracker.compute_progress(record), 1),
        "readyForSale": StatusTracker.is_ready_for_sale(record),
        "location": record.location,
        "status": {key: value.value for key, value in record.status.items()},
    }
    if include_notes:
        data["teamNotes"] = [note.to_wire() for note in record.team_notes]
    return data


def _print_text(entries: list[dict[str, Any]]) -> None:
    for entry in entries:
        print(_section(f"{entry['name']}  [{entry['id']}]"))
        print(f"  state: {entry['state']}")
        print(f"  location: {entry['location'] or '-'}")
        ready = "  (ready for sale)" if entry["readyForSale"] else ""
        print(f"  progress: {entry['progress']}%{ready}")
        for key, value in entry["status"].items():
            print(f"    {key:<16} {value}")
        for note in entry.get("teamNotes", []):
            mark = "*" if note.get("isCertified") else " "
            print(f"  {mark} [{note['category']}] {note['userInitials']}: {note['text']}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Dump the merged vehicle inventory.")
    parser.add_argument("--db", help="SQLite collection database")
    parser.add_argument("--catalog", help="Baseline catalog JSON file")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--notes", action="store_true", help="Include team notes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.catalog:
        overrides["catalog_path"] = args.catalog

    try:
        config = ReconConfig.from_env(**overrides)
        with ReconEngine(config) as engine:
            entries = [
                _as_dict(engine, _with_sections(record, config.section_keys), args.notes)
                for record in engine.store.load_all()
            ]
    except ReconError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(entries, indent=2))
    else:
        _print_text(entries)
        print(f"\n{len(entries)} vehicle(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
