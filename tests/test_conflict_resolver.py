"""
Tests for ranking alternative slots after a booking conflict.
"""

from __future__ import annotations

from datetime import timedelta

from bookflow.application.use_cases.conflict_resolver import ConflictResolver
from bookflow.domain.entities.time_slot import TimeSlot
from tests.conftest import TODAY, at


def slot(label: str, available: bool = True, staff_id: str = "ana", day=TODAY) -> TimeSlot:
    return TimeSlot.for_service(staff_id, at(label, day), 30, is_available=available)


def test_nearest_alternatives_interleave_earlier_and_later():
    rejected = slot("09:00")
    grid = [slot("08:30"), rejected, slot("09:30"), slot("10:00", available=False)]

    alternatives = ConflictResolver().alternatives(rejected, grid)

    assert [s.label for s in alternatives] == ["08:30", "09:30"]


def test_at_most_three_alternatives_sorted_by_distance():
    rejected = slot("12:00")
    grid = [slot(label) for label in ("08:00", "10:30", "11:30", "12:00", "12:30", "13:00", "15:00")]

    alternatives = ConflictResolver().alternatives(rejected, grid)

    assert [s.label for s in alternatives] == ["11:30", "12:30", "13:00"]


def test_rejected_slot_is_excluded_even_if_grid_still_shows_it_free():
    rejected = slot("09:00")
    grid = [slot("09:00"), slot("09:30")]

    alternatives = ConflictResolver().alternatives(rejected, grid)

    assert rejected not in alternatives
    assert [s.label for s in alternatives] == ["09:30"]


def test_only_available_slots_of_the_same_staff_and_day():
    rejected = slot("09:00")
    grid = [
        slot("08:30", available=False),
        slot("09:30", staff_id="bruno"),
        slot("09:00", day=TODAY + timedelta(days=1)),
        slot("11:00"),
    ]

    alternatives = ConflictResolver().alternatives(rejected, grid)

    assert [s.label for s in alternatives] == ["11:00"]


def test_no_alternatives_when_nothing_is_free():
    rejected = slot("09:00")
    grid = [slot("08:30", available=False), rejected]

    assert ConflictResolver().alternatives(rejected, grid) == []


def test_alternatives_are_always_a_subset_of_available_grid():
    resolver = ConflictResolver(max_alternatives=3)
    labels = [f"{h:02d}:{m:02d}" for h in range(8, 18) for m in (0, 30)]
    for i, rejected_label in enumerate(labels):
        grid = [slot(label, available=(j + i) % 3 != 0) for j, label in enumerate(labels)]
        rejected = slot(rejected_label)

        alternatives = resolver.alternatives(rejected, grid)

        free = {s for s in grid if s.is_available}
        assert len(alternatives) <= 3
        assert rejected not in alternatives
        assert set(alternatives) <= free
