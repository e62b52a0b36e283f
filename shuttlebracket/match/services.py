"""Service layer for match data access and result recording."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from shuttlebracket.core.constants import (
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
    MATCH_PENDING,
    MATCH_SCHEDULED,
    MATCH_STATUSES,
    MATCHES_COLLECTION,
)
from shuttlebracket.core.transactions import run_transaction
from shuttlebracket.errors import (
    InvalidWinnerError,
    MissingConfigurationError,
    NotFoundError,
    ValidationError,
)
from shuttlebracket.scheduling.allocator import SlotAllocator, to_utc
from shuttlebracket.scheduling.reservations import SlotReservations

from .advancement import AdvancementPlan, KnockoutAdvancement
from .models import (
    AdvancementOutcome,
    LiveScoreUpdate,
    Match,
    RecordResultResponse,
    ResultSubmission,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from shuttlebracket.tournament.models import TournamentConfig


class MatchService:
    """Service class for match-related operations."""

    @staticmethod
    def _read_match(
        db: Client, match_id: str, transaction: Transaction | None = None
    ) -> Match:
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        match_doc = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
        if not match_doc.exists:
            raise NotFoundError("Match not found.")
        data = cast(Match, match_doc.to_dict() or {})
        data["id"] = match_id
        return data

    @staticmethod
    def get_match_by_id(db: Client, match_id: str) -> Match | None:
        """Fetch a single match by its ID."""
        try:
            return MatchService._read_match(db, match_id)
        except NotFoundError:
            return None

    @staticmethod
    def list_matches(
        db: Client,
        tournament_id: str,
        event_type: str | None = None,
        status: str | None = None,
    ) -> list[Match]:
        """Fetch a tournament's matches, ordered by start time.

        Matches still waiting for a slot have no start time and come last.
        """
        query: Any = db.collection(MATCHES_COLLECTION).where(
            filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
        )
        if event_type:
            query = query.where(filter=firestore.FieldFilter("eventType", "==", event_type))
        if status:
            if status not in MATCH_STATUSES:
                raise ValidationError(f"Unknown match status: {status}.")
            query = query.where(filter=firestore.FieldFilter("status", "==", status))

        matches: list[Match] = []
        for doc in query.stream():
            data = cast(Match, doc.to_dict() or {})
            data["id"] = doc.id
            matches.append(data)

        def sort_key(match: Match) -> tuple[int, datetime.datetime, str]:
            start = match.get("startTime")
            if not start:
                return 1, datetime.datetime.max.replace(tzinfo=datetime.timezone.utc), ""
            return 0, to_utc(start), match.get("courtName", "")

        matches.sort(key=sort_key)
        return matches

    @staticmethod
    def _record_result_transaction(
        transaction: Transaction,
        db: Client,
        submission: ResultSubmission,
        config: TournamentConfig | None,
    ) -> RecordResultResponse:
        """Write a result and its advancement effects as one atomic unit."""
        match = MatchService._read_match(db, submission.match_id, transaction)

        if submission.winner_id not in (match.get("team1Id"), match.get("team2Id")):
            raise InvalidWinnerError()
        if (
            match.get("status") == MATCH_COMPLETED
            and match.get("winnerId")
            and match.get("winnerId") != submission.winner_id
        ):
            raise ValidationError("Match was already completed with a different winner.")
        if match.get("status") == MATCH_PENDING or match.get("needsManualScheduling"):
            raise ValidationError("Match has not been scheduled yet.")

        result: dict[str, Any] = {
            "status": MATCH_COMPLETED,
            "winnerId": submission.winner_id,
            "score": submission.stored_score,
        }
        if submission.forfeited:
            result["forfeitedById"] = (
                match.get("team2Id")
                if submission.winner_id == match.get("team1Id")
                else match.get("team1Id")
            )
        completed = cast(Match, {**match, **result})

        if match.get("round") is None:
            plan = AdvancementPlan(outcome=AdvancementOutcome.NOT_KNOCKOUT)
        elif config is None:
            raise MissingConfigurationError()
        elif not config.is_knockout:
            plan = AdvancementPlan(outcome=AdvancementOutcome.NOT_KNOCKOUT)
        else:
            plan = KnockoutAdvancement.plan(db, transaction, config, completed)

        match_ref = db.collection(MATCHES_COLLECTION).document(submission.match_id)
        transaction.update(
            match_ref,
            {**result, "live": None, "lastUpdateTime": firestore.SERVER_TIMESTAMP},
        )
        plan.apply(transaction)

        court_name, start_time = plan.slot if plan.slot else (None, None)
        return RecordResultResponse(
            match_id=submission.match_id,
            winner_id=submission.winner_id,
            score=submission.stored_score,
            outcome=plan.outcome,
            next_match_id=plan.next_match_id,
            court_name=court_name,
            start_time=start_time,
            bye_rounds=list(plan.bye_rounds),
        )

    @staticmethod
    def record_result(
        db: Client,
        submission: ResultSubmission,
        config: TournamentConfig | None,
    ) -> RecordResultResponse:
        """Record a match result and advance the winner in knockout draws.

        The submission is validated before anything is read. The result, the
        next-round match, its slot claim and any byes are committed together
        or not at all.
        """
        submission.validate()
        response = run_transaction(
            db, MatchService._record_result_transaction, db, submission, config
        )

        if response.outcome == AdvancementOutcome.NEEDS_MANUAL_SCHEDULING:
            logging.warning(
                f"Match {response.next_match_id} created without a slot after "
                f"result on {submission.match_id}."
            )
        else:
            logging.info(
                f"Result recorded for match {submission.match_id}: "
                f"{response.outcome.value}."
            )
        return response

    @staticmethod
    def update_live_score(db: Client, update: LiveScoreUpdate) -> Match:
        """Store the current points of a match and mark it in progress."""
        update.validate()
        match_ref = db.collection(MATCHES_COLLECTION).document(update.match_id)
        match = MatchService._read_match(db, update.match_id)

        if match.get("status") == MATCH_COMPLETED:
            raise ValidationError("Cannot update the score of a completed match.")
        if match.get("status") == MATCH_PENDING:
            raise ValidationError("Match has not been scheduled yet.")
        if update.serving_team_id not in (match.get("team1Id"), match.get("team2Id")):
            raise ValidationError("Serving team must be one of the two teams.")

        live = {
            "team1Points": update.team1_points,
            "team2Points": update.team2_points,
            "servingTeamId": update.serving_team_id,
        }
        match_ref.update(
            {
                "status": MATCH_IN_PROGRESS,
                "live": live,
                "lastUpdateTime": firestore.SERVER_TIMESTAMP,
            }
        )
        match.update({"status": MATCH_IN_PROGRESS, "live": cast(Any, live)})
        return match

    @staticmethod
    def _assign_slot_transaction(
        transaction: Transaction,
        db: Client,
        config: TournamentConfig,
        match_id: str,
        court_name: str,
        start_time: datetime.datetime,
    ) -> Match:
        match = MatchService._read_match(db, match_id, transaction)
        if match.get("status") in (MATCH_IN_PROGRESS, MATCH_COMPLETED):
            raise ValidationError("Only matches that have not started can be moved.")

        slot = (court_name, start_time)
        slot_doc = SlotReservations.slot_ref(db, config.id, slot).get(
            transaction=transaction
        )
        if slot_doc.exists and (slot_doc.to_dict() or {}).get("matchId") != match_id:
            raise ValidationError(
                f"{court_name} is already booked at {start_time:%Y-%m-%d %H:%M}."
            )

        if match.get("courtName") and match.get("startTime"):
            old_slot = (match["courtName"], to_utc(match["startTime"]))
            if old_slot != slot:
                SlotReservations.release(transaction, db, config.id, old_slot)
        if not slot_doc.exists:
            SlotReservations.claim(transaction, db, config.id, slot, match_id)

        changes = {
            "courtName": court_name,
            "startTime": start_time,
            "status": MATCH_SCHEDULED,
            "needsManualScheduling": False,
        }
        transaction.update(db.collection(MATCHES_COLLECTION).document(match_id), changes)
        match.update(cast(Any, changes))
        return match

    @staticmethod
    def assign_slot(
        db: Client,
        config: TournamentConfig,
        match_id: str,
        court_name: str,
        start_time: Any,
    ) -> Match:
        """Place a match on a court by hand, typically one left unscheduled."""
        start = to_utc(start_time)
        if court_name not in config.court_names:
            raise ValidationError(f"Unknown court: {court_name}.")
        allocator = SlotAllocator.for_tournament(config)
        if not allocator.fits(start):
            raise ValidationError("Start time is outside the daily playing window.")

        match = run_transaction(
            db,
            MatchService._assign_slot_transaction,
            db,
            config,
            match_id,
            court_name,
            start,
        )
        logging.info(f"Match {match_id} assigned to {court_name} at {start.isoformat()}.")
        return match
