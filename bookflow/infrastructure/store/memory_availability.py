from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from bookflow.application.exceptions import BookingConflictError
from bookflow.application.ports.availability_store import AvailabilityStorePort

NON_BLOCKING_STATUSES = {"cancelled", "no_show"}


@dataclass
class StoredBooking:
    id: str
    tenant_id: str
    customer_id: str
    service_id: str
    staff_id: str
    start_time: datetime
    end_time: datetime
    price: Decimal
    status: str = "pending"
    notes: str | None = None


class MemoryAvailabilityStore(AvailabilityStorePort):
    """In-process calendar; create_booking re-checks overlap under a per-staff lock."""

    def __init__(self) -> None:
        self._bookings: dict[str, StoredBooking] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._logger = logging.getLogger(__name__)

    async def check(self, tenant_id: str, staff_id: str, start_iso: str, end_iso: str) -> bool:
        start = datetime.fromisoformat(start_iso)
        end = datetime.fromisoformat(end_iso)
        if start >= end:
            return False
        return not self._overlaps(tenant_id, staff_id, start, end)

    async def create_booking(
        self,
        tenant_id: str,
        customer_id: str,
        service_id: str,
        staff_id: str,
        start_iso: str,
        end_iso: str,
        price: Decimal,
        notes: str | None = None,
    ) -> str:
        start = datetime.fromisoformat(start_iso)
        end = datetime.fromisoformat(end_iso)
        async with self._lock_for(tenant_id, staff_id):
            if start >= end or self._overlaps(tenant_id, staff_id, start, end):
                raise BookingConflictError()
            booking_id = str(uuid.uuid4())
            self._bookings[booking_id] = StoredBooking(
                id=booking_id,
                tenant_id=tenant_id,
                customer_id=customer_id,
                service_id=service_id,
                staff_id=staff_id,
                start_time=start,
                end_time=end,
                price=price,
                notes=notes,
            )

        self._logger.info(
            "Booking stored",
            extra={"tenant_id": tenant_id, "staff_id": staff_id, "slot_start": start_iso},
        )
        return booking_id

    def bookings(self, tenant_id: str | None = None) -> list[StoredBooking]:
        return [b for b in self._bookings.values() if tenant_id is None or b.tenant_id == tenant_id]

    def cancel(self, booking_id: str) -> bool:
        booking = self._bookings.get(booking_id)
        if booking is None:
            return False
        booking.status = "cancelled"
        return True

    def _overlaps(self, tenant_id: str, staff_id: str, start: datetime, end: datetime) -> bool:
        for booking in self._bookings.values():
            if booking.tenant_id != tenant_id or booking.staff_id != staff_id:
                continue
            if booking.status in NON_BLOCKING_STATUSES:
                continue
            if start < booking.end_time and booking.start_time < end:
                return True
        return False

    def _lock_for(self, tenant_id: str, staff_id: str) -> asyncio.Lock:
        key = (tenant_id, staff_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock
