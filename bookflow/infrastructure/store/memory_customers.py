from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from bookflow.application.ports.customer_store import CustomerStorePort
from bookflow.domain.entities.customer import Customer


class MemoryCustomerStore(CustomerStorePort):
    def __init__(self) -> None:
        self._customers: dict[tuple[str, str], Customer] = {}

    async def find_by_phone(self, tenant_id: str, phone: str) -> Customer | None:
        return self._customers.get((tenant_id, phone))

    async def upsert(
        self,
        tenant_id: str,
        phone: str,
        name: str,
        email: str | None = None,
        preferred_staff_id: str | None = None,
        customer_id: str | None = None,
    ) -> str:
        key = (tenant_id, phone)
        now = datetime.now(timezone.utc)
        existing = self._customers.get(key)
        if existing is not None:
            self._customers[key] = replace(
                existing,
                name=name,
                email=email,
                preferred_staff_id=preferred_staff_id or existing.preferred_staff_id,
                last_contact_at=now,
                is_active=True,
            )
            return existing.id

        customer = Customer(
            id=customer_id or str(uuid.uuid4()),
            tenant_id=tenant_id,
            phone=phone,
            name=name,
            email=email,
            preferred_staff_id=preferred_staff_id,
            last_contact_at=now,
        )
        self._customers[key] = customer
        return customer.id

    def all(self, tenant_id: str | None = None) -> list[Customer]:
        return [c for c in self._customers.values() if tenant_id is None or c.tenant_id == tenant_id]
