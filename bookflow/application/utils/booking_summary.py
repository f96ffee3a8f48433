from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from bookflow.domain.entities.catalog import Service, StaffMember


@dataclass(frozen=True)
class BookingSummary:
    service_name: str
    staff_name: str
    date: str  # YYYY-MM-DD
    start: str  # HH:MM
    end: str  # HH:MM
    duration_minutes: int
    price: Decimal


def build_summary(service: Service, staff: StaffMember, start_time: datetime, end_time: datetime) -> BookingSummary:
    return BookingSummary(
        service_name=service.name,
        staff_name=staff.display_name,
        date=start_time.date().isoformat(),
        start=start_time.strftime("%H:%M"),
        end=end_time.strftime("%H:%M"),
        duration_minutes=service.duration_minutes,
        price=service.price,
    )
