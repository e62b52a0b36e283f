"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from shuttlebracket.core.constants import (
    BYES_COLLECTION,
    COHORTS_COLLECTION,
    MATCHES_COLLECTION,
    SLOTS_COLLECTION,
    TOURNAMENT_COMPLETED,
    TOURNAMENT_DOC_ID,
    TOURNAMENT_IN_PROGRESS,
    TOURNAMENT_PENDING,
    TOURNAMENTS_COLLECTION,
)
from shuttlebracket.errors import (
    ConflictError,
    DuplicateResourceError,
    MissingConfigurationError,
    ValidationError,
)
from shuttlebracket.match.models import ScheduleDraft
from shuttlebracket.scheduling.allocator import SlotAllocator
from shuttlebracket.scheduling.generator import TournamentGenerator
from shuttlebracket.scheduling.reservations import SlotReservations
from shuttlebracket.teams.services import TeamService

from .models import TournamentConfig
from .utils import get_tournament_standings

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

    from shuttlebracket.teams.models import Team


class TournamentService:
    """Handles business logic and data access for the tournament."""

    @staticmethod
    def _ref(db: Client) -> DocumentReference:
        return db.collection(TOURNAMENTS_COLLECTION).document(TOURNAMENT_DOC_ID)

    @staticmethod
    def get_config(
        db: Client, max_probe_hours: Optional[int] = None
    ) -> TournamentConfig | None:
        """Load the tournament configuration, or None when not configured.

        ``max_probe_hours`` overrides how far a single-match slot search may
        look ahead.
        """
        doc = cast("DocumentSnapshot", TournamentService._ref(db).get())
        if not doc.exists:
            return None
        config = TournamentConfig.from_document(doc.id, doc.to_dict() or {})
        if max_probe_hours is not None:
            config.max_probe_hours = max_probe_hours
        return config

    @staticmethod
    def require_config(
        db: Client, max_probe_hours: Optional[int] = None
    ) -> TournamentConfig:
        """Load the tournament configuration or raise if there is none."""
        config = TournamentService.get_config(db, max_probe_hours)
        if config is None:
            raise MissingConfigurationError()
        return config

    @staticmethod
    def create_config(db: Client, config: TournamentConfig) -> TournamentConfig:
        """Create the deployment's tournament. Only one may exist."""
        config.validate()
        config.id = TOURNAMENT_DOC_ID
        config.status = TOURNAMENT_PENDING
        data = config.to_document()
        data["createdAt"] = firestore.SERVER_TIMESTAMP
        try:
            TournamentService._ref(db).create(data)
        except google_exceptions.AlreadyExists as e:
            raise DuplicateResourceError("A tournament is already configured.") from e
        logging.info(f"Tournament '{config.name}' configured.")
        return config

    @staticmethod
    def update_config(db: Client, config: TournamentConfig) -> TournamentConfig:
        """Replace the tournament settings while no schedule exists."""
        config.validate()
        current = TournamentService.require_config(db)
        if current.status != TOURNAMENT_PENDING:
            raise ValidationError(
                "Tournament settings are locked once the schedule is generated."
            )
        config.id = current.id
        config.status = current.status
        TournamentService._ref(db).update(config.to_document())
        return config

    @staticmethod
    def _draw(
        config: TournamentConfig,
        partitions: dict[str, list[Team]],
        rng: Optional[random.Random],
    ) -> ScheduleDraft:
        if config.is_knockout:
            return TournamentGenerator.generate_knockout(partitions, rng)
        return ScheduleDraft(matches=TournamentGenerator.generate_round_robin(partitions))

    @staticmethod
    def generate_schedule(
        db: Client,
        config: TournamentConfig,
        teams: Optional[list[Team]] = None,
        rng: Optional[random.Random] = None,
    ) -> ScheduleDraft:
        """Generate, place and persist the opening schedule.

        Matches, byes, slot claims and the tournament status change are
        committed in one batch. Returns the persisted drafts with their IDs.
        """
        config.validate(require_courts=True)
        if config.status != TOURNAMENT_PENDING:
            raise ValidationError("The schedule has already been generated.")

        if teams is None:
            teams = TeamService.list_teams(db)
        partitions = TeamService.group_by_event(teams)
        draw = TournamentService._draw(config, partitions, rng)
        if not draw.matches and not draw.byes:
            raise ValidationError("Not enough teams to generate any matches.")

        allocator = SlotAllocator.for_tournament(config)
        taken = SlotReservations.load_taken(db, config.id)
        slots = allocator.allocate(
            [draft.team_ids for draft in draw.matches], config.date, taken
        )

        batch = db.batch()
        for draft, slot in zip(draw.matches, slots):
            draft.court_name, draft.start_time = slot
            match_ref = db.collection(MATCHES_COLLECTION).document()
            draft.id = match_ref.id
            data = draft.to_document(config.id)
            data["createdAt"] = firestore.SERVER_TIMESTAMP
            batch.set(match_ref, data)
            SlotReservations.claim(batch, db, config.id, slot, match_ref.id)

        for bye in draw.byes:
            bye_data = bye.to_document(config.id)
            bye_data["createdAt"] = firestore.SERVER_TIMESTAMP
            batch.set(db.collection(BYES_COLLECTION).document(), bye_data)

        batch.update(
            TournamentService._ref(db),
            {"status": TOURNAMENT_IN_PROGRESS, "startedAt": firestore.SERVER_TIMESTAMP},
        )
        try:
            batch.commit()
        except google_exceptions.AlreadyExists as e:
            raise ConflictError("A court slot was claimed while generating.") from e

        config.status = TOURNAMENT_IN_PROGRESS
        logging.info(
            f"Generated {len(draw.matches)} {config.tournament_type} matches "
            f"and {len(draw.byes)} byes for '{config.name}'."
        )
        return draw

    @staticmethod
    def reset_schedule(db: Client, config: TournamentConfig) -> int:
        """Delete every generated match, bye and slot claim.

        The tournament goes back to PENDING so its settings can be edited and
        the schedule generated again. Returns the number of matches removed.
        """
        batch = db.batch()
        removed = 0
        for collection in (
            MATCHES_COLLECTION,
            BYES_COLLECTION,
            SLOTS_COLLECTION,
            COHORTS_COLLECTION,
        ):
            docs = (
                db.collection(collection)
                .where(filter=firestore.FieldFilter("tournamentId", "==", config.id))
                .stream()
            )
            for doc in docs:
                batch.delete(doc.reference)
                if collection == MATCHES_COLLECTION:
                    removed += 1

        batch.update(
            TournamentService._ref(db),
            {"status": TOURNAMENT_PENDING, "startedAt": None},
        )
        batch.commit()
        config.status = TOURNAMENT_PENDING
        logging.info(f"Schedule reset: {removed} matches removed.")
        return removed

    @staticmethod
    def complete_tournament(db: Client, config: TournamentConfig) -> None:
        """Finalize the tournament."""
        if config.status != TOURNAMENT_IN_PROGRESS:
            raise ValidationError("Only a running tournament can be completed.")
        TournamentService._ref(db).update({"status": TOURNAMENT_COMPLETED})
        config.status = TOURNAMENT_COMPLETED

    @staticmethod
    def get_standings(
        db: Client, config: TournamentConfig
    ) -> dict[str, list[dict[str, Any]]]:
        """Round-robin standings per event type."""
        if config.is_knockout:
            raise ValidationError("Standings are only kept for round-robin play.")
        return get_tournament_standings(db, config.id)
