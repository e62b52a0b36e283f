"""Data models for the tournament blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from shuttlebracket.core.constants import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    KNOCKOUT,
    MATCH_DURATION_MINUTES,
    MAX_PROBE_HOURS,
    TOURNAMENT_FORMATS,
    TOURNAMENT_PENDING,
)
from shuttlebracket.core.types import FirestoreDocument
from shuttlebracket.errors import NoCourtsConfiguredError, ValidationError


class CourtName(FirestoreDocument, total=False):
    """A named court as stored on the tournament document."""

    name: str


class Tournament(FirestoreDocument, total=False):
    """The tournament document in Firestore."""

    name: str
    hostName: str
    location: str
    date: Any
    tournamentType: str
    numberOfCourts: int
    courtNames: list[CourtName]
    status: str
    startedAt: Any
    dayStartHour: int
    dayEndHour: int
    matchDurationMinutes: int


def _coerce_date(value: Any) -> datetime.date:
    """Turn a stored or submitted date into a ``datetime.date``."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value:
        return datetime.date.fromisoformat(value[:10])
    raise ValidationError("Tournament date is required.")


def _coerce_courts(value: Any) -> list[str]:
    """Accept court names as plain strings or ``{"name": ...}`` objects."""
    courts = []
    for court in value or []:
        name = court.get("name") if isinstance(court, dict) else court
        if name and str(name).strip():
            courts.append(str(name).strip())
    return courts


@dataclass
class TournamentConfig:
    """Explicit tournament configuration handed to every scheduling operation."""

    id: str
    date: datetime.date
    tournament_type: str
    court_names: list[str] = field(default_factory=list)
    name: str = ""
    host_name: str | None = None
    location: str = ""
    status: str = TOURNAMENT_PENDING
    day_start_hour: int = DAY_START_HOUR
    day_end_hour: int = DAY_END_HOUR
    match_duration_minutes: int = MATCH_DURATION_MINUTES
    max_probe_hours: int = MAX_PROBE_HOURS

    @property
    def is_knockout(self) -> bool:
        return self.tournament_type == KNOCKOUT

    @property
    def match_duration(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.match_duration_minutes)

    def validate(self, require_courts: bool = False) -> None:
        """Validate the configuration for obvious errors."""
        if self.tournament_type not in TOURNAMENT_FORMATS:
            raise ValidationError(
                f"Unsupported tournament type: {self.tournament_type}."
            )
        if len(set(self.court_names)) != len(self.court_names):
            raise ValidationError("Court names must be unique.")
        if not 0 <= self.day_start_hour < self.day_end_hour <= 24:  # noqa: PLR2004
            raise ValidationError("The daily window must start before it ends.")
        if self.match_duration_minutes <= 0:
            raise ValidationError("Match duration must be positive.")
        window_minutes = (self.day_end_hour - self.day_start_hour) * 60
        if self.match_duration_minutes > window_minutes:
            raise ValidationError("A match must fit inside the daily window.")
        if require_courts and not self.court_names:
            raise NoCourtsConfiguredError()

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> TournamentConfig:
        """Build the configuration from a Firestore tournament document."""
        return cls(
            id=doc_id,
            date=_coerce_date(data.get("date")),
            tournament_type=data.get("tournamentType", ""),
            court_names=_coerce_courts(data.get("courtNames")),
            name=data.get("name", ""),
            host_name=data.get("hostName"),
            location=data.get("location", ""),
            status=data.get("status") or TOURNAMENT_PENDING,
            day_start_hour=int(data.get("dayStartHour", DAY_START_HOUR)),
            day_end_hour=int(data.get("dayEndHour", DAY_END_HOUR)),
            match_duration_minutes=int(
                data.get("matchDurationMinutes", MATCH_DURATION_MINUTES)
            ),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the Firestore document layout."""
        return {
            "name": self.name,
            "hostName": self.host_name,
            "location": self.location,
            # Firestore has no date type; store midnight UTC.
            "date": datetime.datetime.combine(
                self.date, datetime.time.min, tzinfo=datetime.timezone.utc
            ),
            "tournamentType": self.tournament_type,
            "numberOfCourts": len(self.court_names),
            "courtNames": [{"name": name} for name in self.court_names],
            "status": self.status,
            "dayStartHour": self.day_start_hour,
            "dayEndHour": self.day_end_hour,
            "matchDurationMinutes": self.match_duration_minutes,
        }
