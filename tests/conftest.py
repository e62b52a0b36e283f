"""Common utilities for tests."""

import datetime
import unittest
from typing import Any, Optional
from unittest.mock import patch

from firebase_admin import firestore

from shuttlebracket.core.constants import (
    KNOCKOUT,
    TOURNAMENT_DOC_ID,
    TOURNAMENT_IN_PROGRESS,
    TOURNAMENTS_COLLECTION,
)
from shuttlebracket.tournament.models import TournamentConfig
from tests.mock_utils import make_db, patch_mockfirestore, run_transactional

__all__ = ["FirestoreTestCase", "make_config", "patch_mockfirestore"]

TOURNAMENT_DATE = datetime.date(2024, 6, 1)


def utc(*args: int) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=datetime.timezone.utc)


def make_config(
    tournament_type: str = KNOCKOUT,
    court_names: Optional[list[str]] = None,
    **kwargs: Any,
) -> TournamentConfig:
    return TournamentConfig(
        id=kwargs.pop("id", TOURNAMENT_DOC_ID),
        date=kwargs.pop("date", TOURNAMENT_DATE),
        tournament_type=tournament_type,
        court_names=["Court 1", "Court 2"] if court_names is None else court_names,
        name=kwargs.pop("name", "Summer Smash"),
        location=kwargs.pop("location", "Community Hall"),
        **kwargs,
    )


class FirestoreTestCase(unittest.TestCase):
    """Base case with an in-memory store and a pass-through transaction decorator."""

    def setUp(self) -> None:
        self.db = make_db()
        patcher = patch.object(firestore, "transactional", run_transactional)
        patcher.start()
        self.addCleanup(patcher.stop)

    def add_team(
        self, team_id: str, player1: str, player2: Optional[str] = None, event: str = "singles"
    ) -> dict[str, Any]:
        data = {"type": event, "player1Name": player1, "organizationId": "org1"}
        if player2:
            data["player2Name"] = player2
        self.db.collection("teams").document(team_id).set(data)
        return {"id": team_id, **data}

    def add_match(self, match_id: str, **fields: Any) -> None:
        self.db.collection("matches").document(match_id).set(fields)

    def save_config(
        self, config: TournamentConfig, status: str = TOURNAMENT_IN_PROGRESS
    ) -> TournamentConfig:
        config.status = status
        self.db.collection(TOURNAMENTS_COLLECTION).document(config.id).set(
            config.to_document()
        )
        return config

    def docs(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        """All stored documents of a collection matching equality filters."""
        found = []
        for doc in self.db.collection(collection).stream():
            data = doc.to_dict() or {}
            if not data:
                continue
            if all(data.get(k) == v for k, v in filters.items()):
                found.append({"id": doc.id, **data})
        return found
