from __future__ import annotations

from typing import Iterable

from bookflow.domain.entities.time_slot import TimeSlot


class ConflictResolver:
    """Rank alternative slots after a lost race for the requested one."""

    def __init__(self, max_alternatives: int = 3) -> None:
        self._max_alternatives = max_alternatives

    def alternatives(self, rejected: TimeSlot, grid: Iterable[TimeSlot]) -> list[TimeSlot]:
        """
        Available slots of the same staff on the same day, nearest to the
        rejected start first. Ties go to the earlier slot, so earlier and
        later candidates interleave by distance.
        """
        day = rejected.start_time.date()
        candidates = [
            slot
            for slot in grid
            if slot.is_available
            and slot != rejected
            and slot.staff_id == rejected.staff_id
            and slot.start_time.date() == day
        ]
        candidates.sort(
            key=lambda slot: (abs((slot.start_time - rejected.start_time).total_seconds()), slot.start_time)
        )
        return candidates[: self._max_alternatives]
