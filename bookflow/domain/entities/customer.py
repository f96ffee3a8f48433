from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CustomerInfo:
    """Contact details typed into the customer step."""

    name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.phone or self.email or self.notes)


@dataclass(frozen=True)
class Customer:
    # (tenant_id, phone) is the natural key; name/email follow the latest booking attempt
    id: str
    tenant_id: str
    phone: str
    name: str
    email: str | None = None
    preferred_staff_id: str | None = None
    last_contact_at: datetime | None = None
    is_active: bool = True
