"""Match generation, bracket arithmetic and court slot allocation."""

from .allocator import Slot, SlotAllocator, to_utc
from .bracket import get_round_name, pool_size, total_rounds
from .reservations import SlotReservations

__all__ = [
    "Slot",
    "SlotAllocator",
    "SlotReservations",
    "get_round_name",
    "pool_size",
    "to_utc",
    "total_rounds",
]
