"""Tests for the JSON routes of the tournament and match blueprints."""

from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from shuttlebracket import create_app
from shuttlebracket.core.constants import MATCH_COMPLETED
from tests.conftest import FirestoreTestCase

TOURNAMENT_PAYLOAD = {
    "name": "Summer Smash",
    "host_name": "City Club",
    "location": "Community Hall",
    "date": "2024-06-01",
    "tournament_type": "knockout",
    "court_names": "Court 1, Court 2",
}


class RoutesTestCase(FirestoreTestCase):
    app_config: dict = {}

    def setUp(self) -> None:
        super().setUp()
        patcher = patch("firebase_admin.firestore.client", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, **self.app_config}
        )
        self.client = self.app.test_client()

    def configure(self, **overrides: str) -> None:
        response = self.client.post("/tournament/", json={**TOURNAMENT_PAYLOAD, **overrides})
        self.assertEqual(response.status_code, 201, response.get_json())


class TestTournamentRoutes(RoutesTestCase):
    def test_missing_tournament_is_404(self) -> None:
        response = self.client.get("/tournament/")
        self.assertEqual(response.status_code, 404)
        self.assertIn("not been configured", response.get_json()["error"])

    def test_create_and_view(self) -> None:
        self.configure()
        data = self.client.get("/tournament/").get_json()
        self.assertEqual(data["courtNames"], ["Court 1", "Court 2"])
        self.assertEqual(data["status"], "PENDING")
        self.assertEqual(data["dayStartHour"], 9)
        self.assertEqual(data["date"], "2024-06-01")

    def test_second_tournament_conflicts(self) -> None:
        self.configure()
        with self.assertLogs(self.app.logger, level="WARNING") as logs:
            response = self.client.post("/tournament/", json=TOURNAMENT_PAYLOAD)
        self.assertEqual(response.status_code, 409)
        self.assertEqual([r.levelname for r in logs.records], ["WARNING"])
        self.assertIn("Duplicate Resource Error", logs.output[0])

    def test_invalid_form(self) -> None:
        response = self.client.post(
            "/tournament/", json={**TOURNAMENT_PAYLOAD, "tournament_type": "swiss"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("tournament_type", response.get_json()["error"])

    def test_update_before_start(self) -> None:
        self.configure()
        response = self.client.put(
            "/tournament/", json={**TOURNAMENT_PAYLOAD, "court_names": "A\nB\nC"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["courtNames"], ["A", "B", "C"])

    def test_schedule_reset_and_complete(self) -> None:
        self.configure(tournament_type="round-robin")
        for i in range(1, 4):
            self.add_team(f"t{i}", f"Player {i}")

        response = self.client.post("/tournament/schedule")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.get_json()["matches"]), 3)

        response = self.client.put("/tournament/", json=TOURNAMENT_PAYLOAD)
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/tournament/reset")
        self.assertEqual(response.get_json(), {"removedMatches": 3, "status": "PENDING"})

        self.client.post("/tournament/schedule")
        response = self.client.post("/tournament/complete")
        self.assertEqual(response.get_json()["status"], "COMPLETED")

    def test_schedule_without_courts(self) -> None:
        self.configure(court_names="")
        self.add_team("t1", "Player 1")
        self.add_team("t2", "Player 2")
        response = self.client.post("/tournament/schedule")
        self.assertEqual(response.status_code, 400)
        self.assertIn("No courts", response.get_json()["error"])


class TestMatchRoutes(RoutesTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.configure()
        for i in range(1, 5):
            self.add_team(f"t{i}", f"Player {i}")
        self.client.post("/tournament/schedule")
        self.matches = self.client.get("/matches/").get_json()["matches"]

    def test_list_and_view(self) -> None:
        self.assertEqual(len(self.matches), 2)
        self.assertEqual(self.matches[0]["roundName"], "Semi-Finals")
        self.assertEqual(self.matches[0]["startTime"], "2024-06-01T09:00:00+00:00")

        match_id = self.matches[0]["id"]
        response = self.client.get(f"/matches/{match_id}")
        self.assertEqual(response.get_json()["id"], match_id)
        self.assertEqual(self.client.get("/matches/nope").status_code, 404)

    def test_record_results_through_the_final(self) -> None:
        first, second = self.matches
        response = self.client.post(
            f"/matches/{first['id']}/result",
            json={"score": "21-15", "winner_id": first["team1Id"]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["outcome"], "awaiting_opponent")

        response = self.client.post(
            f"/matches/{second['id']}/result",
            json={"score": "18-21", "winner_id": second["team2Id"]},
        )
        body = response.get_json()
        self.assertEqual(body["outcome"], "next_round_scheduled")
        self.assertEqual(body["message"], "Result saved. Next round match scheduled.")
        self.assertEqual(body["courtName"], "Court 1")

        final = self.client.get(f"/matches/{body['nextMatchId']}").get_json()
        self.assertEqual(final["roundName"], "Final")

    def test_bad_score_is_rejected(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/result",
            json={"score": "100-200", "winner_id": first["team1Id"]},
        )
        self.assertEqual(response.status_code, 400)
        stored = self.client.get(f"/matches/{first['id']}").get_json()
        self.assertNotEqual(stored["status"], MATCH_COMPLETED)

    def test_invalid_winner(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/result", json={"score": "21-15", "winner_id": "t9"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Winner", response.get_json()["error"])

    def test_forfeit(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/result",
            json={"winner_id": first["team2Id"], "forfeited": True},
        )
        self.assertEqual(response.status_code, 200, response.get_json())
        self.assertEqual(response.get_json()["score"], "Forfeited")

        stored = self.client.get(f"/matches/{first['id']}").get_json()
        self.assertEqual(stored["forfeitedById"], first["team1Id"])

    def test_missing_score_without_forfeit(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/result", json={"winner_id": first["team1Id"]}
        )
        self.assertEqual(response.status_code, 400)

    def test_live_score(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/live",
            json={"team1_points": 5, "team2_points": 3, "serving_team_id": first["team1Id"]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "IN_PROGRESS")
        self.assertEqual(response.get_json()["live"]["team2Points"], 3)

    def test_assign_slot(self) -> None:
        first = self.matches[0]
        response = self.client.post(
            f"/matches/{first['id']}/assign",
            json={"court_name": "Court 2", "start_time": "2024-06-01T15:00"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["courtName"], "Court 2")
        self.assertEqual(response.get_json()["startTime"], "2024-06-01T15:00:00+00:00")


class TestSlotSearchSetting(RoutesTestCase):
    app_config = {"SCHEDULE_MAX_PROBE_HOURS": 0}

    def test_result_route_uses_configured_search_bound(self) -> None:
        self.configure(court_names="Court 1")
        for i in range(1, 5):
            self.add_team(f"t{i}", f"Player {i}")
        self.client.post("/tournament/schedule")
        first, second = self.client.get("/matches/").get_json()["matches"]

        self.client.post(
            f"/matches/{first['id']}/result",
            json={"score": "21-15", "winner_id": first["team1Id"]},
        )
        response = self.client.post(
            f"/matches/{second['id']}/result",
            json={"score": "21-15", "winner_id": second["team1Id"]},
        )
        body = response.get_json()
        self.assertEqual(body["outcome"], "needs_manual_scheduling")
        self.assertIsNone(body["courtName"])

        final = self.client.get(f"/matches/{body['nextMatchId']}").get_json()
        self.assertTrue(final["needsManualScheduling"])


class TestAppFactory(unittest.TestCase):
    def test_404_is_json(self) -> None:
        app = create_app({"TESTING": True})
        response = app.test_client().get("/non_existent_page")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Not found."})

    def test_schedule_defaults_from_environment(self) -> None:
        with patch.dict(os.environ, {"SCHEDULE_DAY_START_HOUR": "8"}):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["SCHEDULE_DAY_START_HOUR"], 8)
        self.assertEqual(app.config["SCHEDULE_DAY_END_HOUR"], 20)
        self.assertEqual(app.config["SCHEDULE_MAX_PROBE_HOURS"], 48)


if __name__ == "__main__":
    unittest.main()
