"""Match generation for round-robin and knockout formats."""

from __future__ import annotations

import random
from itertools import zip_longest
from typing import TYPE_CHECKING, Optional

from shuttlebracket.match.models import ByeDraft, MatchDraft, ScheduleDraft
from shuttlebracket.teams.models import team_display_name

if TYPE_CHECKING:
    from shuttlebracket.teams.models import Team


class TournamentGenerator:
    """Utility class for generating tournament matches."""

    MIN_PARTICIPANTS = 2

    @staticmethod
    def _draft(
        team1: Team,
        team2: Team,
        event_type: str,
        round_number: Optional[int] = None,
        draw_size: Optional[int] = None,
    ) -> MatchDraft:
        return MatchDraft(
            team1_id=team1["id"],
            team2_id=team2["id"],
            team1_name=team_display_name(team1),
            team2_name=team_display_name(team2),
            event_type=event_type,
            round=round_number,
            draw_size=draw_size,
        )

    @staticmethod
    def round_robin_pairings(teams: list[Team]) -> list[tuple[Team, Team]]:
        """Generate round robin pairings using the circle method.

        Pairings come out round by round, so consecutive pairings rarely share
        a team.
        """
        if len(teams) < TournamentGenerator.MIN_PARTICIPANTS:
            return []

        slots: list[Optional[Team]] = list(teams)
        if len(slots) % 2 != 0:
            slots.append(None)

        num_slots = len(slots)
        pairings = []
        for _ in range(num_slots - 1):
            for i in range(num_slots // 2):
                t1 = slots[i]
                t2 = slots[num_slots - 1 - i]
                if t1 is not None and t2 is not None:
                    pairings.append((t1, t2))
            # Keep the first slot fixed, rotate the others
            slots = [slots[0], slots[-1]] + slots[1:-1]

        return pairings

    @staticmethod
    def interleave(event_lists: list[list[MatchDraft]]) -> list[MatchDraft]:
        """Alternate between events while keeping each event's own order."""
        merged = []
        for group in zip_longest(*event_lists):
            merged.extend(draft for draft in group if draft is not None)
        return merged

    @staticmethod
    def generate_round_robin(partitions: dict[str, list[Team]]) -> list[MatchDraft]:
        """Pair every team with every other team of the same event exactly once."""
        event_lists = [
            [
                TournamentGenerator._draft(t1, t2, event_type)
                for t1, t2 in TournamentGenerator.round_robin_pairings(teams)
            ]
            for event_type, teams in partitions.items()
        ]
        return TournamentGenerator.interleave(event_lists)

    @staticmethod
    def generate_knockout(
        partitions: dict[str, list[Team]], rng: Optional[random.Random] = None
    ) -> ScheduleDraft:
        """Randomly pair each event's teams into first-round matches.

        An odd-sized event sends its last team (after shuffling) through on a
        bye, which is recorded so the next round's pairing can find it.
        """
        rng = rng or random.Random()  # nosec B311
        draw = ScheduleDraft()
        event_lists = []

        for event_type, teams in partitions.items():
            draw_size = len(teams)
            shuffled = list(teams)
            rng.shuffle(shuffled)

            if draw_size % 2 != 0:
                bye_team = shuffled.pop()
                draw.byes.append(
                    ByeDraft(
                        team_id=bye_team["id"],
                        team_name=team_display_name(bye_team),
                        event_type=event_type,
                        round=1,
                        draw_size=draw_size,
                    )
                )

            event_lists.append(
                [
                    TournamentGenerator._draft(
                        shuffled[i], shuffled[i + 1], event_type, 1, draw_size
                    )
                    for i in range(0, len(shuffled), 2)
                ]
            )

        draw.matches = TournamentGenerator.interleave(event_lists)
        return draw
