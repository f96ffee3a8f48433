from __future__ import annotations

from decimal import Decimal

from bookflow.application.exceptions import NotFoundError
from bookflow.application.ports.catalog import CatalogPort
from bookflow.application.ports.tenant_resolver import TenantResolverPort
from bookflow.domain.entities.catalog import Service, StaffMember
from bookflow.domain.entities.tenant import Tenant


class MemoryCatalog(CatalogPort):
    def __init__(self) -> None:
        self._services: dict[str, dict[str, Service]] = {}
        self._staff: dict[str, dict[str, StaffMember]] = {}

    def add_service(self, tenant_id: str, service: Service) -> None:
        self._services.setdefault(tenant_id, {})[service.id] = service

    def add_staff(self, tenant_id: str, member: StaffMember) -> None:
        self._staff.setdefault(tenant_id, {})[member.id] = member

    def remove_service(self, tenant_id: str, service_id: str) -> None:
        self._services.get(tenant_id, {}).pop(service_id, None)

    def remove_staff(self, tenant_id: str, staff_id: str) -> None:
        self._staff.get(tenant_id, {}).pop(staff_id, None)

    async def list_services(self, tenant_id: str) -> list[Service]:
        services = [s for s in self._services.get(tenant_id, {}).values() if s.is_active]
        return sorted(services, key=lambda s: s.name)

    async def get_service(self, tenant_id: str, service_id: str) -> Service | None:
        return self._services.get(tenant_id, {}).get(service_id)

    async def list_staff(self, tenant_id: str) -> list[StaffMember]:
        staff = [m for m in self._staff.get(tenant_id, {}).values() if m.is_active]
        return sorted(staff, key=lambda m: m.display_name)

    async def get_staff(self, tenant_id: str, staff_id: str) -> StaffMember | None:
        return self._staff.get(tenant_id, {}).get(staff_id)


class MemoryTenantResolver(TenantResolverPort):
    def __init__(self, tenants: list[Tenant] | None = None) -> None:
        self._by_slug = {t.slug: t for t in tenants or []}

    def add(self, tenant: Tenant) -> None:
        self._by_slug[tenant.slug] = tenant

    async def resolve_by_slug(self, slug: str) -> Tenant:
        tenant = self._by_slug.get(slug)
        if tenant is None:
            raise NotFoundError("Tenant", slug)
        return tenant


def seed_demo(slug: str = "demo") -> tuple[MemoryTenantResolver, MemoryCatalog]:
    """Small barbershop used by local runs."""
    tenant = Tenant(id="tenant-demo", slug=slug, name="Demo Barbershop")
    catalog = MemoryCatalog()
    catalog.add_service(tenant.id, Service("svc-cut", "Haircut", 30, Decimal("50.00"), "hair"))
    catalog.add_service(tenant.id, Service("svc-beard", "Beard trim", 20, Decimal("35.00"), "beard"))
    catalog.add_service(tenant.id, Service("svc-combo", "Haircut + beard", 60, Decimal("75.00"), "combo"))
    catalog.add_staff(tenant.id, StaffMember("staff-ana", "Ana", role="barber"))
    catalog.add_staff(tenant.id, StaffMember("staff-bruno", "Bruno", role="barber"))
    return MemoryTenantResolver([tenant]), catalog
