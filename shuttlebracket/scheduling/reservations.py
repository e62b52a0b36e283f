"""Firestore-backed ledger of claimed court slots."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from shuttlebracket.core.constants import SLOTS_COLLECTION

from .allocator import Slot, to_utc

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class SlotReservations:
    """One document per claimed (court, start time), keyed deterministically.

    Claims use ``create``, which fails when the document already exists, so two
    writers racing for the same slot cannot both succeed.
    """

    @staticmethod
    def slot_id(tournament_id: str, slot: Slot) -> str:
        court_name, start = slot
        safe_court = court_name.replace("/", "-")
        return f"{tournament_id}_{safe_court}_{to_utc(start):%Y%m%dT%H%M}"

    @staticmethod
    def slot_ref(db: Client, tournament_id: str, slot: Slot) -> DocumentReference:
        return db.collection(SLOTS_COLLECTION).document(
            SlotReservations.slot_id(tournament_id, slot)
        )

    @staticmethod
    def load_taken(
        db: Client, tournament_id: str, transaction: Transaction | None = None
    ) -> set[Slot]:
        """Fetch every slot already claimed for the tournament."""
        query = db.collection(SLOTS_COLLECTION).where(
            filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
        )
        taken: set[Slot] = set()
        for doc in query.stream(transaction=transaction):
            data = doc.to_dict() or {}
            if data.get("courtName") and data.get("startTime"):
                taken.add((data["courtName"], to_utc(data["startTime"])))
        return taken

    @staticmethod
    def claim(
        writer: Any, db: Client, tournament_id: str, slot: Slot, match_id: str
    ) -> None:
        """Queue a conditional claim on a batch or transaction."""
        court_name, start = slot
        writer.create(
            SlotReservations.slot_ref(db, tournament_id, slot),
            {
                "tournamentId": tournament_id,
                "courtName": court_name,
                "startTime": to_utc(start),
                "matchId": match_id,
            },
        )

    @staticmethod
    def release(writer: Any, db: Client, tournament_id: str, slot: Slot) -> None:
        writer.delete(SlotReservations.slot_ref(db, tournament_id, slot))
