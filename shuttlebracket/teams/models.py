"""Data models for the teams feature."""

from __future__ import annotations

from typing import Any

from shuttlebracket.core.types import FirestoreDocument


class Team(FirestoreDocument, total=False):
    """A registered team (or singles player) in Firestore."""

    type: str
    player1Name: str
    player2Name: str
    organizationId: str
    lotNumber: int


def team_display_name(team: Team | dict[str, Any]) -> str:
    """Return the name shown on fixtures, joining both players for doubles."""
    player1 = team.get("player1Name") or "Unknown"
    player2 = team.get("player2Name")
    if player2:
        return f"{player1} & {player2}"
    return str(player1)
