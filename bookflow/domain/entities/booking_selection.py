from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from bookflow.domain.entities.customer import CustomerInfo
from bookflow.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class BookingSelection:
    service_id: str | None = None
    staff_id: str | None = None
    date: date | None = None
    slot: TimeSlot | None = None
    customer: CustomerInfo = CustomerInfo()

    def with_service(self, service_id: str) -> BookingSelection:
        return replace(self, service_id=service_id)

    def with_staff(self, staff_id: str | None) -> BookingSelection:
        """Select a staff member. Any change of staff drops the slot; re-selecting the same one keeps it."""
        if staff_id == self.staff_id:
            return self
        return replace(self, staff_id=staff_id, slot=None)

    def with_date(self, day: date) -> BookingSelection:
        if day == self.date:
            return self
        slot = self.slot if self.slot is not None and self.slot.start_time.date() == day else None
        return replace(self, date=day, slot=slot)

    def with_slot(self, slot: TimeSlot | None) -> BookingSelection:
        if slot is not None and slot.staff_id != self.staff_id:
            raise ValueError("Slot must belong to the selected staff member")
        return replace(self, slot=slot)

    def with_customer(self, customer: CustomerInfo) -> BookingSelection:
        return replace(self, customer=customer)
