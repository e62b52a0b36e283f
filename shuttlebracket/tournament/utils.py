"""Utility functions for tournament standings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from shuttlebracket.core.constants import MATCH_COMPLETED, MATCHES_COLLECTION
from shuttlebracket.match.models import SCORE_RE

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def parse_score(score: str | None) -> tuple[int, int] | None:
    """Split a ``"21-15"`` score into team 1 and team 2 points."""
    if not score or not SCORE_RE.fullmatch(score):
        return None
    team1_points, team2_points = score.split("-")
    return int(team1_points), int(team2_points)


def fetch_completed_matches(db: Client, tournament_id: str) -> Any:
    """Fetch the tournament's completed match documents."""
    return (
        db.collection(MATCHES_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .where(filter=firestore.FieldFilter("status", "==", MATCH_COMPLETED))
        .stream()
    )


def aggregate_match_data(matches: Any) -> dict[str, dict[str, dict[str, Any]]]:
    """Iterate once through matches to build wins, losses and point_diff per event."""
    standings: dict[str, dict[str, dict[str, Any]]] = {}

    for match in matches:
        data = match.to_dict()
        if not data:
            continue
        id1 = data.get("team1Id")
        id2 = data.get("team2Id")
        winner_id = data.get("winnerId")
        if not id1 or not id2 or winner_id not in (id1, id2):
            continue

        event = standings.setdefault(data.get("eventType", ""), {})
        for tid, name in ((id1, data.get("team1Name")), (id2, data.get("team2Name"))):
            if tid not in event:
                event[tid] = {
                    "id": tid,
                    "name": name or "Unknown",
                    "wins": 0,
                    "losses": 0,
                    "point_diff": 0,
                }

        loser_id = id2 if winner_id == id1 else id1
        event[winner_id]["wins"] += 1
        event[loser_id]["losses"] += 1

        points = parse_score(data.get("score"))
        if points:
            p1, p2 = points
            event[id1]["point_diff"] += p1 - p2
            event[id2]["point_diff"] += p2 - p1

    return standings


def sort_standings(raw_standings: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort one event's standings by the tie-breaking rules."""
    standings_list = list(raw_standings.values())
    # Sort by wins (desc), losses (asc), then point_diff (desc)
    standings_list.sort(
        key=lambda x: (x["wins"], -x["losses"], x.get("point_diff", 0)), reverse=True
    )
    return standings_list


def get_tournament_standings(
    db: Client, tournament_id: str
) -> dict[str, list[dict[str, Any]]]:
    """Orchestrate the calculation of standings for every event type."""
    matches = fetch_completed_matches(db, tournament_id)
    raw = aggregate_match_data(matches)
    return {event: sort_standings(rows) for event, rows in raw.items()}
