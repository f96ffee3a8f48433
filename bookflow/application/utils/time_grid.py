from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def parse_hhmm(value: str) -> time:
    hour, minute = value.strip().split(":")
    return time(hour=int(hour), minute=int(minute))


def slot_starts(
    day: date,
    timezone: ZoneInfo,
    work_start: time,
    work_end: time,
    step_minutes: int,
) -> list[datetime]:
    """Every step-aligned start from work_start (inclusive) to work_end (exclusive)."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    current = datetime.combine(day, work_start, tzinfo=timezone)
    end = datetime.combine(day, work_end, tzinfo=timezone)
    starts: list[datetime] = []
    while current < end:
        starts.append(current)
        current += timedelta(minutes=step_minutes)
    return starts


def to_iso(value: datetime) -> str:
    return value.isoformat()
