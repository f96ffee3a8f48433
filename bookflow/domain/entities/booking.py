from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Booking:
    id: str
    tenant_id: str
    service_id: str
    staff_id: str
    customer_id: str
    start_time: datetime
    end_time: datetime
    price: Decimal
    status: str = "pending"  # later transitions belong to the dashboard
    notes: str | None = None
