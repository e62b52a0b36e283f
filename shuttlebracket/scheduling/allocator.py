"""Court and time-slot allocation.

A slot is a ``(court_name, start_time)`` pair. Both entry points walk the
same sequence of slots (courts in configured order inside each time step,
time steps inside the daily window, rolling over to the next morning) and
share one collision rule: a slot in ``taken`` is never handed out again.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, Optional

from shuttlebracket.core.constants import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    MATCH_DURATION_MINUTES,
    MAX_PROBE_HOURS,
)
from shuttlebracket.errors import NoCourtsConfiguredError, ValidationError

if TYPE_CHECKING:
    from shuttlebracket.tournament.models import TournamentConfig

Slot = tuple[str, datetime.datetime]


def to_utc(value: Any) -> datetime.datetime:
    """Normalize a stored or computed time to a whole-second UTC datetime.

    Firestore hands back timezone-aware values (with nanoseconds); callers may
    pass naive values, which are taken to be UTC already.
    """
    if isinstance(value, datetime.datetime):
        aware = (
            value.replace(tzinfo=datetime.timezone.utc)
            if value.tzinfo is None
            else value.astimezone(datetime.timezone.utc)
        )
        return datetime.datetime(*aware.timetuple()[:6], tzinfo=datetime.timezone.utc)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(
            value, datetime.time.min, tzinfo=datetime.timezone.utc
        )
    raise TypeError(f"Cannot interpret {value!r} as a time.")


class SlotAllocator:
    """Hands out free court slots inside a fixed daily operating window."""

    def __init__(
        self,
        court_names: Sequence[str],
        day_start_hour: int = DAY_START_HOUR,
        day_end_hour: int = DAY_END_HOUR,
        match_duration: datetime.timedelta = datetime.timedelta(
            minutes=MATCH_DURATION_MINUTES
        ),
        max_probe_hours: int = MAX_PROBE_HOURS,
    ) -> None:
        if not court_names:
            raise NoCourtsConfiguredError()
        self.court_names = list(court_names)
        self.day_start_hour = day_start_hour
        self.day_end_hour = day_end_hour
        self.match_duration = match_duration
        self.max_probe_hours = max_probe_hours
        if (day_end_hour - day_start_hour) * 60 < match_duration.total_seconds() / 60:
            raise ValidationError("A match must fit inside the daily window.")

    @classmethod
    def for_tournament(cls, config: TournamentConfig) -> SlotAllocator:
        """Build an allocator from the tournament's courts and window."""
        return cls(
            config.court_names,
            day_start_hour=config.day_start_hour,
            day_end_hour=config.day_end_hour,
            match_duration=config.match_duration,
            max_probe_hours=config.max_probe_hours,
        )

    def opening(self, day: datetime.date) -> datetime.datetime:
        """Return the first start time of the given day."""
        return datetime.datetime.combine(
            day,
            datetime.time(self.day_start_hour),
            tzinfo=datetime.timezone.utc,
        )

    def closing(self, day: datetime.date) -> datetime.datetime:
        """Return the end-of-day boundary of the given day."""
        return self.opening(day) + datetime.timedelta(
            hours=self.day_end_hour - self.day_start_hour
        )

    def fits(self, start: datetime.datetime) -> bool:
        """Check that a match starting at ``start`` lies inside its day's window."""
        day = start.date()
        return (
            self.opening(day) <= start
            and start + self.match_duration <= self.closing(day)
        )

    def _roll_forward(self, start: datetime.datetime) -> datetime.datetime:
        """Move an out-of-window start to the next opening."""
        if self.fits(start):
            return start
        if start < self.opening(start.date()):
            return self.opening(start.date())
        return self.opening(start.date() + datetime.timedelta(days=1))

    def iter_start_times(self, start: Any) -> Iterator[datetime.datetime]:
        """Yield valid start times from ``start`` onwards, one match length apart."""
        current = self._roll_forward(to_utc(start))
        while True:
            yield current
            current = self._roll_forward(current + self.match_duration)

    def allocate(
        self,
        participants: Sequence[tuple[str, str]],
        first_day: datetime.date,
        taken: Optional[Iterable[Slot]] = None,
    ) -> list[Slot]:
        """Place a list of matches, breadth-first over courts per time step.

        ``participants`` holds the two team IDs of each match, in placement
        order. A match is held back to a later step only when one of its teams
        already plays in the current step; otherwise order is preserved.
        Returns one slot per entry, aligned with ``participants``.
        """
        claimed: set[Slot] = set(taken or ())
        assigned: list[Optional[Slot]] = [None] * len(participants)
        queue = list(range(len(participants)))

        for start in self.iter_start_times(self.opening(first_day)):
            if not queue:
                break
            free_courts = [c for c in self.court_names if (c, start) not in claimed]
            busy: set[str] = set()
            held_back = []
            for index in queue:
                teams = participants[index]
                if free_courts and busy.isdisjoint(teams):
                    slot = (free_courts.pop(0), start)
                    assigned[index] = slot
                    claimed.add(slot)
                    busy.update(teams)
                else:
                    held_back.append(index)
            queue = held_back

        return [slot for slot in assigned if slot is not None]

    def find_slot(
        self, after: Any, taken: Iterable[Slot]
    ) -> Optional[Slot]:
        """Find the first free slot following a match that started at ``after``.

        Probes one step at a time, every court in list order at each step, for
        at most ``max_probe_hours`` of clock time. Returns None when nothing is
        free inside that bound.
        """
        claimed = set(taken)
        anchor = to_utc(after)
        deadline = anchor + datetime.timedelta(hours=self.max_probe_hours)

        for start in self.iter_start_times(anchor + self.match_duration):
            if start > deadline:
                return None
            for court in self.court_names:
                if (court, start) not in claimed:
                    return court, start
        return None
