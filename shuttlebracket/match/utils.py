"""Utility functions for presenting matches."""

from __future__ import annotations

import datetime
from typing import Any

from shuttlebracket.scheduling.bracket import get_round_name


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value


def serialize_match(match: dict[str, Any]) -> dict[str, Any]:
    """Make a match document JSON-safe and add its round's display name."""
    data = {
        key: _jsonable(value)
        for key, value in match.items()
        if key not in ("createdAt", "lastUpdateTime")
    }
    if match.get("round") and match.get("drawSize"):
        data["roundName"] = get_round_name(match["round"], match["drawSize"])
    return data
