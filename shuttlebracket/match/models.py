"""Data models for the match blueprint."""

from __future__ import annotations

import datetime
import enum
import re
from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

from shuttlebracket.core.constants import (
    FORFEITED_SCORE,
    MATCH_SCHEDULED,
    SCORE_PATTERN,
)
from shuttlebracket.core.types import FirestoreDocument
from shuttlebracket.errors import ValidationError

SCORE_RE = re.compile(SCORE_PATTERN)


class LiveScore(TypedDict, total=False):
    """Point-by-point state while a match is in progress."""

    team1Points: int
    team2Points: int
    servingTeamId: str


class Match(FirestoreDocument, total=False):
    """A match document in Firestore."""

    tournamentId: str
    team1Id: str
    team2Id: str
    # Snapshots taken when the match is created; renaming a team later does
    # not rewrite them.
    team1Name: str
    team2Name: str
    eventType: str
    courtName: str
    startTime: Any
    status: str
    winnerId: str
    score: str
    forfeitedById: str
    round: int
    drawSize: int
    live: Optional[LiveScore]
    needsManualScheduling: bool


class Bye(FirestoreDocument, total=False):
    """A team that advances out of a knockout round without playing."""

    tournamentId: str
    teamId: str
    teamName: str
    eventType: str
    round: int
    drawSize: int


@dataclass
class MatchDraft:
    """A generated match before it is persisted."""

    team1_id: str
    team2_id: str
    team1_name: str
    team2_name: str
    event_type: str
    court_name: str = ""
    start_time: Optional[datetime.datetime] = None
    status: str = MATCH_SCHEDULED
    round: Optional[int] = None
    draw_size: Optional[int] = None
    id: Optional[str] = None

    @property
    def team_ids(self) -> tuple[str, str]:
        return self.team1_id, self.team2_id

    def to_document(self, tournament_id: str) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tournamentId": tournament_id,
            "team1Id": self.team1_id,
            "team2Id": self.team2_id,
            "team1Name": self.team1_name,
            "team2Name": self.team2_name,
            "eventType": self.event_type,
            "courtName": self.court_name,
            "startTime": self.start_time,
            "status": self.status,
        }
        if self.round is not None:
            data["round"] = self.round
            data["drawSize"] = self.draw_size
        return data


@dataclass
class ByeDraft:
    """A generated bye before it is persisted."""

    team_id: str
    team_name: str
    event_type: str
    round: int
    draw_size: int

    def to_document(self, tournament_id: str) -> dict[str, Any]:
        return {
            "tournamentId": tournament_id,
            "teamId": self.team_id,
            "teamName": self.team_name,
            "eventType": self.event_type,
            "round": self.round,
            "drawSize": self.draw_size,
        }


@dataclass
class ScheduleDraft:
    """Generated matches and byes, ready to be placed and persisted."""

    matches: list[MatchDraft] = field(default_factory=list)
    byes: list[ByeDraft] = field(default_factory=list)


@dataclass
class ResultSubmission:
    """Dataclass for a result submitted by an umpire."""

    match_id: str
    score: str
    winner_id: str
    forfeited: bool = False

    @property
    def stored_score(self) -> str:
        return FORFEITED_SCORE if self.forfeited else self.score

    def validate(self) -> None:
        """Validate the submission before anything is read from the store.

        A forfeit carries no score.
        """
        if not self.match_id:
            raise ValidationError("Match ID is required.")
        if not self.forfeited and (
            not isinstance(self.score, str) or not SCORE_RE.fullmatch(self.score)
        ):
            raise ValidationError("Score must look like '21-15'.")
        if not self.winner_id:
            raise ValidationError("Winner is required.")


@dataclass
class LiveScoreUpdate:
    """Dataclass for a live point update."""

    match_id: str
    team1_points: int
    team2_points: int
    serving_team_id: str

    def validate(self) -> None:
        if self.team1_points < 0 or self.team2_points < 0:
            raise ValidationError("Points cannot be negative.")
        if not self.serving_team_id:
            raise ValidationError("Serving team is required.")


class AdvancementOutcome(str, enum.Enum):
    """What happened downstream of a recorded result."""

    NEXT_ROUND_SCHEDULED = "next_round_scheduled"
    AWAITING_OPPONENT = "awaiting_opponent"
    NEEDS_MANUAL_SCHEDULING = "needs_manual_scheduling"
    ALREADY_ADVANCED = "already_advanced"
    EVENT_COMPLETE = "event_complete"
    NOT_KNOCKOUT = "not_knockout"


OUTCOME_MESSAGES = {
    AdvancementOutcome.NEXT_ROUND_SCHEDULED: "Result saved. Next round match scheduled.",
    AdvancementOutcome.AWAITING_OPPONENT: "Result saved. Winner is waiting for an opponent.",
    AdvancementOutcome.NEEDS_MANUAL_SCHEDULING: (
        "Result saved, but no court slot could be found. "
        "The next round match needs manual scheduling."
    ),
    AdvancementOutcome.ALREADY_ADVANCED: "Result saved. Winner had already advanced.",
    AdvancementOutcome.EVENT_COMPLETE: "Result saved. The final is complete.",
    AdvancementOutcome.NOT_KNOCKOUT: "Result saved.",
}


@dataclass
class RecordResultResponse:
    """Dataclass describing a committed result and its downstream effect."""

    match_id: str
    winner_id: str
    score: str
    outcome: AdvancementOutcome
    next_match_id: Optional[str] = None
    court_name: Optional[str] = None
    start_time: Optional[datetime.datetime] = None
    bye_rounds: list[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchId": self.match_id,
            "winnerId": self.winner_id,
            "score": self.score,
            "outcome": self.outcome.value,
            "message": self.message,
            "nextMatchId": self.next_match_id,
            "courtName": self.court_name,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "byeRounds": self.bye_rounds,
        }
