"""Knockout advancement: pairing round winners into the next round.

Everything here runs inside the result-recording transaction. Firestore
requires every read to happen before the first write, so the engine only
reads and queues its writes on an ``AdvancementPlan``, which the caller
applies after writing the completed match.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from shuttlebracket.core.constants import (
    BYES_COLLECTION,
    COHORTS_COLLECTION,
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCH_SCHEDULED,
    MATCHES_COLLECTION,
)
from shuttlebracket.scheduling.allocator import Slot, SlotAllocator
from shuttlebracket.scheduling.bracket import pool_size, total_rounds
from shuttlebracket.scheduling.reservations import SlotReservations
from shuttlebracket.teams.models import team_display_name
from shuttlebracket.teams.services import TeamService

from .models import AdvancementOutcome, Match

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from shuttlebracket.tournament.models import TournamentConfig


@dataclass
class AdvancementPlan:
    """Writes decided by the engine, held back until all reads are done."""

    outcome: AdvancementOutcome
    writes: list[tuple[str, Any, dict[str, Any]]] = field(default_factory=list)
    next_match_id: Optional[str] = None
    slot: Optional[Slot] = None
    bye_rounds: list[int] = field(default_factory=list)

    def create(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(("create", ref, data))

    def set(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(("set", ref, data))

    def update(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(("update", ref, data))

    def apply(self, writer: Any) -> None:
        """Replay the queued writes onto a transaction or batch."""
        for op, ref, data in self.writes:
            getattr(writer, op)(ref, data)


class KnockoutAdvancement:
    """Decides what a completed knockout match means for the next round."""

    @staticmethod
    def _cohort_query(
        db: Client, collection: str, tournament_id: str, event_type: str, round_number: int
    ) -> Any:
        return (
            db.collection(collection)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .where(filter=firestore.FieldFilter("eventType", "==", event_type))
            .where(filter=firestore.FieldFilter("round", "==", round_number))
        )

    @staticmethod
    def _lock_cohort(
        db: Client,
        transaction: Transaction,
        plan: AdvancementPlan,
        tournament_id: str,
        event_type: str,
        round_number: int,
    ) -> None:
        """Read and bump the cohort's version document.

        Every advancement decision for a cohort reads and rewrites this
        document, so two concurrent decisions for the same cohort always
        collide and one of them is retried against the other's result.
        """
        lock_ref = db.collection(COHORTS_COLLECTION).document(
            f"{tournament_id}_{event_type}_{round_number}"
        )
        lock_doc = lock_ref.get(transaction=transaction)
        version = 0
        if lock_doc.exists:
            version = (lock_doc.to_dict() or {}).get("version", 0)
        plan.set(
            lock_ref,
            {
                "tournamentId": tournament_id,
                "eventType": event_type,
                "round": round_number,
                "version": version + 1,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )

    @staticmethod
    def _round_winners(
        db: Client,
        transaction: Transaction,
        tournament_id: str,
        event_type: str,
        round_number: int,
        completed_match: Match,
    ) -> list[str]:
        """Collect winners of a cohort: completed matches first, then byes.

        The match being completed is not written yet, so its new state is
        substituted for whatever the store returns.
        """
        winners: list[str] = []
        seen_completed = False
        matches = KnockoutAdvancement._cohort_query(
            db, MATCHES_COLLECTION, tournament_id, event_type, round_number
        ).stream(transaction=transaction)
        for doc in matches:
            data = cast(Match, doc.to_dict() or {})
            if doc.id == completed_match.get("id"):
                data = completed_match
                seen_completed = True
            if data.get("status") == MATCH_COMPLETED and data.get("winnerId"):
                winners.append(data["winnerId"])

        if (
            not seen_completed
            and completed_match.get("round") == round_number
            and completed_match.get("winnerId")
        ):
            winners.append(completed_match["winnerId"])

        byes = KnockoutAdvancement._cohort_query(
            db, BYES_COLLECTION, tournament_id, event_type, round_number
        ).stream(transaction=transaction)
        for doc in byes:
            team_id = (doc.to_dict() or {}).get("teamId")
            if team_id:
                winners.append(team_id)

        return list(dict.fromkeys(winners))

    @staticmethod
    def _placed_teams(
        db: Client,
        transaction: Transaction,
        tournament_id: str,
        event_type: str,
        round_number: int,
    ) -> set[str]:
        """Teams already holding a match or a bye in the given round."""
        placed: set[str] = set()
        matches = KnockoutAdvancement._cohort_query(
            db, MATCHES_COLLECTION, tournament_id, event_type, round_number
        ).stream(transaction=transaction)
        for doc in matches:
            data = doc.to_dict() or {}
            placed.update(t for t in (data.get("team1Id"), data.get("team2Id")) if t)

        byes = KnockoutAdvancement._cohort_query(
            db, BYES_COLLECTION, tournament_id, event_type, round_number
        ).stream(transaction=transaction)
        for doc in byes:
            team_id = (doc.to_dict() or {}).get("teamId")
            if team_id:
                placed.add(team_id)
        return placed

    @staticmethod
    def _draw_size(
        db: Client,
        transaction: Transaction,
        tournament_id: str,
        event_type: str,
        completed_match: Match,
    ) -> int:
        """Number of first-round entrants, read off the match when recorded there."""
        if completed_match.get("drawSize"):
            return int(completed_match["drawSize"])
        entrants = KnockoutAdvancement._placed_teams(
            db, transaction, tournament_id, event_type, 1
        )
        return len(entrants)

    @staticmethod
    def _schedule_pairing(  # noqa: PLR0913
        db: Client,
        transaction: Transaction,
        plan: AdvancementPlan,
        config: TournamentConfig,
        completed_match: Match,
        team1_id: str,
        team2_id: str,
        round_number: int,
        draw_size: int,
    ) -> None:
        """Queue the next-round match, on a free slot when one can be found."""
        team1 = TeamService.get_team(db, team1_id, transaction)
        team2 = TeamService.get_team(db, team2_id, transaction)

        allocator = SlotAllocator.for_tournament(config)
        taken = SlotReservations.load_taken(db, config.id, transaction)
        anchor = completed_match.get("startTime") or datetime.datetime.now(
            datetime.timezone.utc
        )
        slot = allocator.find_slot(anchor, taken)

        match_ref = db.collection(MATCHES_COLLECTION).document()
        match_data: dict[str, Any] = {
            "tournamentId": config.id,
            "team1Id": team1_id,
            "team2Id": team2_id,
            "team1Name": team_display_name(team1),
            "team2Name": team_display_name(team2),
            "eventType": completed_match.get("eventType"),
            "round": round_number,
            "drawSize": draw_size,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        if slot:
            court_name, start_time = slot
            match_data.update(
                {
                    "courtName": court_name,
                    "startTime": start_time,
                    "status": MATCH_SCHEDULED,
                    "needsManualScheduling": False,
                }
            )
            SlotReservations.claim(plan, db, config.id, slot, match_ref.id)
            plan.outcome = AdvancementOutcome.NEXT_ROUND_SCHEDULED
        else:
            match_data.update(
                {
                    "courtName": "",
                    "startTime": None,
                    "status": MATCH_PENDING,
                    "needsManualScheduling": True,
                }
            )
            plan.outcome = AdvancementOutcome.NEEDS_MANUAL_SCHEDULING
            logging.warning(
                f"No court slot within {allocator.max_probe_hours}h for "
                f"{match_data['eventType']} round {round_number}: "
                f"{team1_id} vs {team2_id}. Needs manual scheduling."
            )

        plan.set(match_ref, match_data)
        plan.next_match_id = match_ref.id
        plan.slot = slot

    @staticmethod
    def plan(
        db: Client,
        transaction: Transaction,
        config: TournamentConfig,
        completed_match: Match,
    ) -> AdvancementPlan:
        """Work out the next-round effect of ``completed_match``.

        ``completed_match`` carries the new state (COMPLETED, winnerId) and its
        document ID under ``id``. The winner is paired with the first other
        winner of its round that has not been placed yet; with nobody free it
        waits. When its round is complete and the next round's pool is odd, the
        waiting winner takes that round's bye and the search repeats one round
        further on.
        """
        event_type = cast(str, completed_match.get("eventType"))
        round_number = int(completed_match.get("round") or 1)
        winner_id = cast(str, completed_match.get("winnerId"))
        draw_size = KnockoutAdvancement._draw_size(
            db, transaction, config.id, event_type, completed_match
        )
        plan = AdvancementPlan(outcome=AdvancementOutcome.AWAITING_OPPONENT)

        if round_number >= total_rounds(draw_size):
            plan.outcome = AdvancementOutcome.EVENT_COMPLETE
            return plan

        pending_byes: dict[int, list[str]] = {}
        while round_number < total_rounds(draw_size):
            next_round = round_number + 1
            KnockoutAdvancement._lock_cohort(
                db, transaction, plan, config.id, event_type, round_number
            )
            winners = KnockoutAdvancement._round_winners(
                db, transaction, config.id, event_type, round_number, completed_match
            )
            winners += [w for w in pending_byes.get(round_number, []) if w not in winners]
            placed = KnockoutAdvancement._placed_teams(
                db, transaction, config.id, event_type, next_round
            )

            if winner_id in placed:
                if not plan.bye_rounds:
                    plan.outcome = AdvancementOutcome.ALREADY_ADVANCED
                return plan

            opponent_id = next(
                (w for w in winners if w != winner_id and w not in placed), None
            )
            if opponent_id:
                KnockoutAdvancement._schedule_pairing(
                    db,
                    transaction,
                    plan,
                    config,
                    completed_match,
                    opponent_id,
                    winner_id,
                    next_round,
                    draw_size,
                )
                return plan

            next_pool = pool_size(draw_size, next_round)
            if len(winners) < next_pool or next_pool % 2 == 0:
                plan.outcome = AdvancementOutcome.AWAITING_OPPONENT
                return plan

            # The round is complete and left this winner as the odd one out.
            bye_ref = db.collection(BYES_COLLECTION).document()
            plan.set(
                bye_ref,
                {
                    "tournamentId": config.id,
                    "teamId": winner_id,
                    "teamName": TeamService.get_team_name(db, winner_id, transaction),
                    "eventType": event_type,
                    "round": next_round,
                    "drawSize": draw_size,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                },
            )
            pending_byes.setdefault(next_round, []).append(winner_id)
            plan.bye_rounds.append(next_round)
            logging.info(
                f"{winner_id} receives a bye into {event_type} round {next_round}."
            )
            round_number = next_round

        return plan
