"""Knockout bracket arithmetic."""

import math


def total_rounds(draw_size: int) -> int:
    """Number of rounds needed to reduce ``draw_size`` entrants to a champion."""
    if draw_size < 2:
        return 0
    return math.ceil(math.log2(draw_size))


def pool_size(draw_size: int, round_number: int) -> int:
    """Number of teams eligible to play in ``round_number``.

    Round 1 holds every entrant; each later round holds the winners of the
    previous one, an odd pool sending its leftover team through on a bye.
    """
    size = draw_size
    for _ in range(1, round_number):
        size = math.ceil(size / 2)
    return size


def get_round_name(round_number: int, draw_size: int) -> str:
    """Get the display name of a round."""
    rounds = total_rounds(draw_size)
    if rounds == 0:
        return f"Round {round_number}"
    if round_number == rounds:
        return "Final"
    if round_number == rounds - 1:
        return "Semi-Finals"
    if round_number == rounds - 2:
        return "Quarter-Finals"
    if rounds > 4 and round_number == rounds - 3:  # noqa: PLR2004
        return "Round of 16"
    return f"Round {round_number}"
