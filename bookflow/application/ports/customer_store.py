from __future__ import annotations

from abc import ABC, abstractmethod

from bookflow.domain.entities.customer import Customer


class CustomerStorePort(ABC):
    @abstractmethod
    async def find_by_phone(self, tenant_id: str, phone: str) -> Customer | None:
        raise NotImplementedError

    @abstractmethod
    async def upsert(
        self,
        tenant_id: str,
        phone: str,
        name: str,
        email: str | None = None,
        preferred_staff_id: str | None = None,
        customer_id: str | None = None,
    ) -> str:
        """
        Insert or update the customer identified by (tenant_id, phone).
        Returns the customer id; an existing row keeps its id.
        """
        raise NotImplementedError
