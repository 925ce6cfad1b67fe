"""Normalization helpers.

Lenient parsing of catalog and overlay values, plus actor checks.
"""

from __future__ import annotations

import math
from typing import Any

from pyrecon.exceptions import ReconMissingActorError


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def require_actor(actor: str | None, *, operation: str) -> str:
    """Return stripped actor initials or raise :class:`ReconMissingActorError`."""
    initials = safe_str(actor)
    if initials is None:
        raise ReconMissingActorError(f"{operation} requires actor initials")
    return initials
