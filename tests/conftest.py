from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from bookflow.application.use_cases.booking_wizard import BookingWizard
from bookflow.application.use_cases.conflict_resolver import ConflictResolver
from bookflow.application.use_cases.customer_resolver import CustomerResolver
from bookflow.application.use_cases.retry_executor import RetryExecutor
from bookflow.application.use_cases.slot_availability import SlotAvailabilityGateway
from bookflow.domain.entities.catalog import Service, StaffMember
from bookflow.domain.entities.tenant import Tenant
from bookflow.infrastructure.store.memory_catalog import MemoryCatalog
from bookflow.infrastructure.store.memory_customers import MemoryCustomerStore
from tests.fakes import FakeAvailabilityStore, no_sleep

TZ = ZoneInfo("America/Sao_Paulo")
TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 7, 0, tzinfo=TZ)
TENANT = Tenant(id="tenant-1", slug="barbearia", name="Barbearia Zero Um")


def at(hhmm: str, day: date = TODAY) -> datetime:
    hour, minute = hhmm.split(":")
    return datetime(day.year, day.month, day.day, int(hour), int(minute), tzinfo=TZ)


@pytest.fixture
def catalog() -> MemoryCatalog:
    catalog = MemoryCatalog()
    catalog.add_service(TENANT.id, Service("svc-cut", "Corte", 30, Decimal("50.00"), "hair"))
    catalog.add_service(TENANT.id, Service("svc-long", "Corte + barba", 60, Decimal("80.00"), "combo"))
    catalog.add_staff(TENANT.id, StaffMember("ana", "Ana"))
    catalog.add_staff(TENANT.id, StaffMember("bruno", "Bruno"))
    return catalog


@pytest.fixture
def store() -> FakeAvailabilityStore:
    return FakeAvailabilityStore()


@pytest.fixture
def customers() -> MemoryCustomerStore:
    return MemoryCustomerStore()


@pytest.fixture
def retry() -> RetryExecutor:
    return RetryExecutor(max_attempts=2, base_delay_ms=0, sleep=no_sleep)


@pytest.fixture
def gateway(store: FakeAvailabilityStore, retry: RetryExecutor) -> SlotAvailabilityGateway:
    return SlotAvailabilityGateway(store=store, retry=retry, timezone=TZ)


@pytest.fixture
def make_wizard(catalog, store, customers, retry, gateway):
    def _make(session_id: str = "session-1") -> BookingWizard:
        return BookingWizard(
            tenant=TENANT,
            catalog=catalog,
            availability=gateway,
            store=store,
            customers=CustomerResolver(customers),
            conflicts=ConflictResolver(max_alternatives=3),
            retry=retry,
            clock=lambda: NOW,
            session_id=session_id,
        )

    return _make


@pytest.fixture
def wizard(make_wizard) -> BookingWizard:
    return make_wizard()
