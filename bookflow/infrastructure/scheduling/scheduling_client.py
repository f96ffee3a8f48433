from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from bookflow.application.exceptions import BookingConflictError, NotFoundError, TransientServiceError
from bookflow.application.ports.availability_store import AvailabilityStorePort
from bookflow.application.ports.catalog import CatalogPort
from bookflow.application.ports.customer_store import CustomerStorePort
from bookflow.application.ports.tenant_resolver import TenantResolverPort
from bookflow.core.config import settings
from bookflow.domain.entities.catalog import Service, StaffMember
from bookflow.domain.entities.customer import Customer
from bookflow.domain.entities.tenant import Tenant

SERVICE_NAME = "scheduling_api"


class SchedulingApiClient(AvailabilityStorePort, CustomerStorePort, CatalogPort, TenantResolverPort):
    """REST scheduling backend: calendar checks, bookings, customers, catalog and tenants."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key or settings.SCHEDULING_API_KEY
        self._base_url = (base_url or settings.SCHEDULING_API_BASE_URL or "").rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.SCHEDULING_API_TIMEOUT)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("SCHEDULING_API_KEY is required for the scheduling API")
        if not self._base_url:
            raise ValueError("SCHEDULING_API_BASE_URL is required for the scheduling API")

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- availability ---------------------------------------------------

    async def check(self, tenant_id: str, staff_id: str, start_iso: str, end_iso: str) -> bool:
        response = await self._request(
            "POST",
            "/rpc/check_availability",
            json={
                "p_tenant_id": tenant_id,
                "p_staff_id": staff_id,
                "p_start_time": start_iso,
                "p_end_time": end_iso,
            },
        )
        return response.json() is True

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
        response = await self._request(
            "POST",
            "/bookings",
            json={
                "tenant_id": tenant_id,
                "customer_id": customer_id,
                "service_id": service_id,
                "staff_id": staff_id,
                "start_time": start_iso,
                "end_time": end_iso,
                "status": "pending",
                "total_price": str(price),
                "notes": notes,
            },
        )
        booking_id = response.json().get("id")
        if not booking_id:
            raise TransientServiceError(SERVICE_NAME, "No booking id returned from scheduling API", retryable=False)
        return str(booking_id)

    # -- customers ------------------------------------------------------

    async def find_by_phone(self, tenant_id: str, phone: str) -> Customer | None:
        response = await self._request("GET", "/customers", params={"tenant_id": tenant_id, "phone": phone})
        rows = response.json() or []
        if not rows:
            return None
        return _customer_from_json(rows[0])

    async def upsert(
        self,
        tenant_id: str,
        phone: str,
        name: str,
        email: str | None = None,
        preferred_staff_id: str | None = None,
        customer_id: str | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "tenant_id": tenant_id,
            "phone": phone,
            "name": name,
            "email": email,
            "last_contact_date": datetime.now(timezone.utc).isoformat(),
            "is_active": True,
        }
        if preferred_staff_id:
            payload["preferred_staff_id"] = preferred_staff_id
        if customer_id:
            payload["id"] = customer_id

        # conflict target is (tenant_id, phone) on the server side
        response = await self._request("PUT", "/customers", json=payload)
        data = response.json()
        if not data.get("id"):
            raise TransientServiceError(SERVICE_NAME, "No customer id returned from scheduling API", retryable=False)
        return str(data["id"])

    # -- catalog --------------------------------------------------------

    async def list_services(self, tenant_id: str) -> list[Service]:
        response = await self._request("GET", f"/tenants/{tenant_id}/services")
        services = [_service_from_json(row) for row in response.json() or []]
        return sorted((s for s in services if s.is_active), key=lambda s: s.name)

    async def get_service(self, tenant_id: str, service_id: str) -> Service | None:
        response = await self._request("GET", f"/tenants/{tenant_id}/services/{service_id}", allow=(404,))
        if response.status_code == 404:
            return None
        return _service_from_json(response.json())

    async def list_staff(self, tenant_id: str) -> list[StaffMember]:
        response = await self._request("GET", f"/tenants/{tenant_id}/staff")
        staff = [_staff_from_json(row) for row in response.json() or []]
        return sorted((m for m in staff if m.is_active), key=lambda m: m.display_name)

    async def get_staff(self, tenant_id: str, staff_id: str) -> StaffMember | None:
        response = await self._request("GET", f"/tenants/{tenant_id}/staff/{staff_id}", allow=(404,))
        if response.status_code == 404:
            return None
        return _staff_from_json(response.json())

    # -- tenants --------------------------------------------------------

    async def resolve_by_slug(self, slug: str) -> Tenant:
        response = await self._request("GET", f"/tenants/{slug}", allow=(404,))
        if response.status_code == 404:
            raise NotFoundError("Tenant", slug)
        data = response.json()
        if data.get("status", "active") != "active":
            raise NotFoundError("Tenant", slug)
        return Tenant(
            id=str(data["id"]),
            slug=data.get("slug", slug),
            name=data.get("name", slug),
            timezone=(data.get("settings") or {}).get("timezone"),
        )

    async def _request(
        self,
        method: str,
        path: str,
        allow: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send a request and map failures onto the booking error taxonomy.
        Status codes listed in allow are handed back to the caller as-is.
        """
        url = f"{self._base_url}{path}"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            self._logger.warning("Scheduling API unreachable", extra={"error": str(e)})
            raise TransientServiceError(SERVICE_NAME) from e

        if response.status_code in allow:
            return response
        if response.status_code == 404:
            raise NotFoundError("Resource", path)
        if response.status_code == 409:
            self._logger.info("Scheduling API reported a conflict", extra={"error": f"{method} {path}"})
            raise BookingConflictError()
        if response.status_code == 429 or response.status_code >= 500:
            self._logger.warning(
                "Scheduling API error",
                extra={"error": f"{method} {path} -> {response.status_code}"},
            )
            raise TransientServiceError(SERVICE_NAME)
        if response.status_code >= 400:
            self._logger.error(
                "Scheduling API rejected request",
                extra={"error": f"{method} {path} -> {response.status_code}"},
            )
            raise TransientServiceError(SERVICE_NAME, "The scheduling service rejected the request.", retryable=False)
        return response


def _service_from_json(row: dict[str, Any]) -> Service:
    return Service(
        id=str(row["id"]),
        name=row["name"],
        duration_minutes=int(row["duration_min"]),
        price=Decimal(str(row.get("price", 0))),
        category=row.get("category"),
        description=row.get("description"),
        is_active=row.get("is_active", True),
    )


def _staff_from_json(row: dict[str, Any]) -> StaffMember:
    return StaffMember(
        id=str(row["id"]),
        display_name=row["display_name"],
        avatar_url=row.get("avatar_url"),
        role=row.get("role"),
        is_active=row.get("is_active", True),
    )


def _customer_from_json(row: dict[str, Any]) -> Customer:
    last_contact = row.get("last_contact_date")
    return Customer(
        id=str(row["id"]),
        tenant_id=str(row["tenant_id"]),
        phone=row["phone"],
        name=row.get("name", ""),
        email=row.get("email"),
        preferred_staff_id=row.get("preferred_staff_id"),
        last_contact_at=datetime.fromisoformat(last_contact) if last_contact else None,
        is_active=row.get("is_active", True),
    )
