from __future__ import annotations

import logging

from bookflow.application.exceptions import ValidationError
from bookflow.application.ports.customer_store import CustomerStorePort
from bookflow.application.utils.validation import normalize_phone


class CustomerResolver:
    """Find-or-create a tenant-scoped customer by phone number."""

    def __init__(self, store: CustomerStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    async def resolve(
        self,
        tenant_id: str,
        phone: str,
        name: str,
        email: str | None = None,
        preferred_staff_id: str | None = None,
    ) -> str:
        """
        Return the id of the customer owning (tenant_id, phone).
        An existing customer gets name/email overwritten; calling this again
        with the same phone never creates a second customer.
        """
        normalized = normalize_phone(phone)
        if not normalized:
            raise ValidationError("phone", "Phone is required")

        existing = await self._store.find_by_phone(tenant_id, normalized)
        customer_id = await self._store.upsert(
            tenant_id=tenant_id,
            phone=normalized,
            name=name.strip(),
            email=(email or "").strip() or None,
            preferred_staff_id=preferred_staff_id,
            customer_id=existing.id if existing else None,
        )

        if existing:
            self._logger.info("Customer updated", extra={"tenant_id": tenant_id})
        else:
            self._logger.info("Customer created", extra={"tenant_id": tenant_id})
        return customer_id
