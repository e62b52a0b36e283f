"""Tests for match reads, live scoring and transaction error mapping."""

from __future__ import annotations

import unittest

from google.api_core import exceptions as google_exceptions

from shuttlebracket.core.constants import (
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
    MATCH_PENDING,
    MATCH_SCHEDULED,
)
from shuttlebracket.core.transactions import run_transaction
from shuttlebracket.errors import ConflictError, NotFoundError, ValidationError
from shuttlebracket.match.models import LiveScoreUpdate
from shuttlebracket.match.services import MatchService
from shuttlebracket.match.utils import serialize_match
from tests.conftest import FirestoreTestCase, utc


class TestMatchQueries(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_match(
            "late", tournamentId="current", eventType="singles", status=MATCH_SCHEDULED,
            courtName="Court 1", startTime=utc(2024, 6, 1, 11),
        )
        self.add_match(
            "early", tournamentId="current", eventType="mixed_doubles",
            status=MATCH_SCHEDULED, courtName="Court 2", startTime=utc(2024, 6, 1, 9),
        )
        self.add_match(
            "unplaced", tournamentId="current", eventType="singles",
            status=MATCH_PENDING, courtName="", startTime=None,
        )
        self.add_match(
            "foreign", tournamentId="other", eventType="singles", status=MATCH_SCHEDULED,
            courtName="Court 1", startTime=utc(2024, 6, 1, 8),
        )

    def test_list_is_ordered_by_start_time(self) -> None:
        matches = MatchService.list_matches(self.db, "current")
        self.assertEqual([m["id"] for m in matches], ["early", "late", "unplaced"])

    def test_list_filters(self) -> None:
        singles = MatchService.list_matches(self.db, "current", event_type="singles")
        self.assertEqual({m["id"] for m in singles}, {"late", "unplaced"})
        pending = MatchService.list_matches(self.db, "current", status=MATCH_PENDING)
        self.assertEqual([m["id"] for m in pending], ["unplaced"])

    def test_get_match_by_id(self) -> None:
        self.assertEqual(MatchService.get_match_by_id(self.db, "late")["id"], "late")
        self.assertIsNone(MatchService.get_match_by_id(self.db, "nope"))

    def test_serialize_adds_round_name(self) -> None:
        data = serialize_match(
            {"id": "m", "round": 2, "drawSize": 4, "startTime": utc(2024, 6, 1, 9)}
        )
        self.assertEqual(data["roundName"], "Final")
        self.assertEqual(data["startTime"], "2024-06-01T09:00:00+00:00")


class TestLiveScore(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_match(
            "m1", tournamentId="current", team1Id="t1", team2Id="t2",
            status=MATCH_SCHEDULED, courtName="Court 1", startTime=utc(2024, 6, 1, 9),
        )

    def test_first_point_starts_the_match(self) -> None:
        match = MatchService.update_live_score(self.db, LiveScoreUpdate("m1", 1, 0, "t1"))
        self.assertEqual(match["status"], MATCH_IN_PROGRESS)

        stored = MatchService.get_match_by_id(self.db, "m1")
        self.assertEqual(stored["status"], MATCH_IN_PROGRESS)
        self.assertEqual(stored["live"]["team1Points"], 1)
        self.assertEqual(stored["live"]["servingTeamId"], "t1")

    def test_rejects_bad_updates(self) -> None:
        with self.assertRaises(ValidationError):
            MatchService.update_live_score(self.db, LiveScoreUpdate("m1", -1, 0, "t1"))
        with self.assertRaises(ValidationError):
            MatchService.update_live_score(self.db, LiveScoreUpdate("m1", 1, 0, "t9"))
        with self.assertRaises(NotFoundError):
            MatchService.update_live_score(self.db, LiveScoreUpdate("x", 1, 0, "t1"))

    def test_completed_match_is_frozen(self) -> None:
        self.db.collection("matches").document("m1").update({"status": MATCH_COMPLETED})
        with self.assertRaises(ValidationError):
            MatchService.update_live_score(self.db, LiveScoreUpdate("m1", 1, 0, "t1"))


class TestRunTransaction(FirestoreTestCase):
    def test_returns_the_result(self) -> None:
        self.assertEqual(run_transaction(self.db, lambda t, x: x * 2, 21), 42)

    def test_exhausted_retries_become_conflicts(self) -> None:
        def give_up(transaction):
            raise ValueError("Failed to commit transaction in 2 attempts.")

        with self.assertRaises(ConflictError):
            run_transaction(self.db, give_up)

    def test_other_value_errors_propagate(self) -> None:
        def broken(transaction):
            raise ValueError("bad input")

        with self.assertRaises(ValueError):
            run_transaction(self.db, broken)

    def test_contention_becomes_conflict(self) -> None:
        def contended(transaction):
            raise google_exceptions.Conflict("busy")

        with self.assertRaises(ConflictError):
            run_transaction(self.db, contended)


if __name__ == "__main__":
    unittest.main()
