from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta


@dataclass(frozen=True)
class TimeSlot:
    """A candidate (staff, start, end) interval. Equality only considers staff and start."""

    staff_id: str
    start_time: datetime
    end_time: datetime = field(compare=False)
    is_available: bool = field(default=False, compare=False)

    @classmethod
    def for_service(cls, staff_id: str, start_time: datetime, duration_minutes: int, is_available: bool = False) -> TimeSlot:
        return cls(
            staff_id=staff_id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            is_available=is_available,
        )

    @property
    def label(self) -> str:
        return self.start_time.strftime("%H:%M")

    def with_availability(self, is_available: bool) -> TimeSlot:
        return replace(self, is_available=is_available)
