"""Tests for court slot allocation."""

from __future__ import annotations

import datetime
import unittest

from shuttlebracket.errors import NoCourtsConfiguredError, ValidationError
from shuttlebracket.scheduling.allocator import SlotAllocator, to_utc
from tests.conftest import make_config, utc

DAY = datetime.date(2024, 6, 1)


class TestSlotAllocatorBulk(unittest.TestCase):
    def setUp(self) -> None:
        self.allocator = SlotAllocator(["Court 1", "Court 2"])

    def test_fills_every_court_before_advancing(self) -> None:
        slots = self.allocator.allocate([("a", "b"), ("c", "d"), ("e", "f")], DAY)
        self.assertEqual(
            slots,
            [
                ("Court 1", utc(2024, 6, 1, 9)),
                ("Court 2", utc(2024, 6, 1, 9)),
                ("Court 1", utc(2024, 6, 1, 10)),
            ],
        )

    def test_team_never_plays_twice_in_one_step(self) -> None:
        slots = self.allocator.allocate([("a", "b"), ("a", "c"), ("d", "e")], DAY)
        self.assertEqual(slots[0], ("Court 1", utc(2024, 6, 1, 9)))
        self.assertEqual(slots[1], ("Court 1", utc(2024, 6, 1, 10)))
        self.assertEqual(slots[2], ("Court 2", utc(2024, 6, 1, 9)))

    def test_rolls_over_to_next_morning(self) -> None:
        allocator = SlotAllocator(["Main"])
        participants = [(f"a{i}", f"b{i}") for i in range(12)]
        slots = allocator.allocate(participants, DAY)

        # 09:00 through 19:00 is eleven one-hour matches.
        self.assertEqual(slots[10], ("Main", utc(2024, 6, 1, 19)))
        self.assertEqual(slots[11], ("Main", utc(2024, 6, 2, 9)))
        for _, start in slots:
            self.assertGreaterEqual(start.hour, 9)
            self.assertLess(start.hour, 20)

    def test_skips_taken_slots(self) -> None:
        taken = {("Court 1", utc(2024, 6, 1, 9))}
        slots = self.allocator.allocate([("a", "b"), ("c", "d")], DAY, taken)
        self.assertEqual(
            slots,
            [("Court 2", utc(2024, 6, 1, 9)), ("Court 1", utc(2024, 6, 1, 10))],
        )

    def test_never_duplicates_a_slot(self) -> None:
        allocator = SlotAllocator(["A", "B", "C"])
        participants = [(f"t{i}", f"t{i + 1}") for i in range(0, 60, 2)]
        slots = allocator.allocate(participants, DAY)
        self.assertEqual(len(slots), 30)
        self.assertEqual(len(set(slots)), 30)

    def test_no_courts(self) -> None:
        with self.assertRaises(NoCourtsConfiguredError):
            SlotAllocator([])

    def test_match_longer_than_window(self) -> None:
        with self.assertRaises(ValidationError):
            SlotAllocator(
                ["A"], day_start_hour=9, day_end_hour=10,
                match_duration=datetime.timedelta(minutes=90),
            )

    def test_for_tournament_uses_config_window(self) -> None:
        config = make_config(
            court_names=["X"], day_start_hour=8, day_end_hour=12, match_duration_minutes=30
        )
        allocator = SlotAllocator.for_tournament(config)
        slots = allocator.allocate([("a", "b"), ("c", "d")], DAY)
        self.assertEqual(
            slots, [("X", utc(2024, 6, 1, 8)), ("X", utc(2024, 6, 1, 8, 30))]
        )


class TestSlotAllocatorSearch(unittest.TestCase):
    def setUp(self) -> None:
        self.allocator = SlotAllocator(["Court 1", "Court 2"])

    def test_first_free_court_after_the_match(self) -> None:
        taken = {("Court 1", utc(2024, 6, 1, 11))}
        slot = self.allocator.find_slot(utc(2024, 6, 1, 10), taken)
        self.assertEqual(slot, ("Court 2", utc(2024, 6, 1, 11)))

    def test_late_match_rolls_to_next_day(self) -> None:
        slot = self.allocator.find_slot(utc(2024, 6, 1, 19), set())
        self.assertEqual(slot, ("Court 1", utc(2024, 6, 2, 9)))

    def test_gives_up_after_probe_window(self) -> None:
        allocator = SlotAllocator(["Court 1"], max_probe_hours=2)
        taken = {("Court 1", utc(2024, 6, 1, 11)), ("Court 1", utc(2024, 6, 1, 12))}
        self.assertIsNone(allocator.find_slot(utc(2024, 6, 1, 10), taken))

    def test_found_slot_always_fits_window(self) -> None:
        taken = {
            (court, utc(2024, 6, 1, hour))
            for court in ("Court 1", "Court 2")
            for hour in range(9, 20)
        }
        slot = self.allocator.find_slot(utc(2024, 6, 1, 9), taken)
        self.assertEqual(slot, ("Court 1", utc(2024, 6, 2, 9)))
        self.assertTrue(self.allocator.fits(slot[1]))


class TestTimeHelpers(unittest.TestCase):
    def test_to_utc_naive_and_fractional(self) -> None:
        value = datetime.datetime(2024, 6, 1, 9, 0, 0, 123456)
        self.assertEqual(to_utc(value), utc(2024, 6, 1, 9))

    def test_to_utc_converts_offsets(self) -> None:
        tz = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2024, 6, 1, 11, tzinfo=tz)
        self.assertEqual(to_utc(value), utc(2024, 6, 1, 9))

    def test_start_times_begin_at_opening(self) -> None:
        allocator = SlotAllocator(["A"])
        times = allocator.iter_start_times(utc(2024, 6, 1, 7, 30))
        self.assertEqual(next(times), utc(2024, 6, 1, 9))
        self.assertEqual(next(times), utc(2024, 6, 1, 10))


if __name__ == "__main__":
    unittest.main()
