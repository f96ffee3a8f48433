from __future__ import annotations

from abc import ABC, abstractmethod

from bookflow.domain.entities.catalog import Service, StaffMember


class CatalogPort(ABC):
    @abstractmethod
    async def list_services(self, tenant_id: str) -> list[Service]:
        """Active services of the tenant, sorted by name."""
        raise NotImplementedError

    @abstractmethod
    async def get_service(self, tenant_id: str, service_id: str) -> Service | None:
        raise NotImplementedError

    @abstractmethod
    async def list_staff(self, tenant_id: str) -> list[StaffMember]:
        """Active staff of the tenant, sorted by display name."""
        raise NotImplementedError

    @abstractmethod
    async def get_staff(self, tenant_id: str, staff_id: str) -> StaffMember | None:
        raise NotImplementedError
