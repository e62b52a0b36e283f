"""Service layer for team-related operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from shuttlebracket.core.constants import EVENT_TYPES, TEAMS_COLLECTION
from shuttlebracket.errors import NotFoundError, ValidationError

from .models import Team, team_display_name

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


class TeamService:
    """Service class for team-related operations."""

    @staticmethod
    def get_team(
        db: Client, team_id: str, transaction: Transaction | None = None
    ) -> Team:
        """Fetch a team by ID, reading through the transaction when given."""
        team_ref = db.collection(TEAMS_COLLECTION).document(team_id)
        team_doc = cast("DocumentSnapshot", team_ref.get(transaction=transaction))
        if not team_doc.exists:
            raise NotFoundError(f"Team {team_id} not found.")
        data = cast(Team, team_doc.to_dict() or {})
        data["id"] = team_id
        return data

    @staticmethod
    def get_team_name(
        db: Client, team_id: str, transaction: Transaction | None = None
    ) -> str:
        """Resolve the current display name of a team."""
        return team_display_name(TeamService.get_team(db, team_id, transaction))

    @staticmethod
    def list_teams(db: Client, event_type: str | None = None) -> list[Team]:
        """Fetch all registered teams, optionally limited to one event type."""
        query: Any = db.collection(TEAMS_COLLECTION)
        if event_type:
            query = query.where(filter=firestore.FieldFilter("type", "==", event_type))

        teams: list[Team] = []
        for doc in query.stream():
            data = cast(Team, doc.to_dict() or {})
            data["id"] = doc.id
            teams.append(data)
        return teams

    @staticmethod
    def group_by_event(teams: list[Team]) -> dict[str, list[Team]]:
        """Partition teams by event type, keeping registration order."""
        partitions: dict[str, list[Team]] = {event: [] for event in EVENT_TYPES}
        for team in teams:
            event_type = team.get("type")
            if event_type not in partitions:
                raise ValidationError(
                    f"Team {team.get('id')} has an unknown event type: {event_type}."
                )
            partitions[event_type].append(team)
        return partitions
