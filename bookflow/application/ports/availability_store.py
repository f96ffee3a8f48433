from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal


class AvailabilityStorePort(ABC):
    """Shared calendar. Implementations must behave as if serialized per (staff, interval)."""

    @abstractmethod
    async def check(self, tenant_id: str, staff_id: str, start_iso: str, end_iso: str) -> bool:
        """Check if the exact interval is free for the staff member."""
        raise NotImplementedError

    @abstractmethod
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
        """Create a pending booking. Returns booking_id, raises BookingConflictError if taken."""
        raise NotImplementedError
