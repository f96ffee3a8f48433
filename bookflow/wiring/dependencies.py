from functools import lru_cache
import logging
import uuid
from zoneinfo import ZoneInfo

from bookflow.core.config import settings
from bookflow.application.ports.availability_store import AvailabilityStorePort
from bookflow.application.ports.catalog import CatalogPort
from bookflow.application.ports.customer_store import CustomerStorePort
from bookflow.application.ports.session_store import WizardSessionStorePort
from bookflow.application.ports.tenant_resolver import TenantResolverPort
from bookflow.application.use_cases.booking_wizard import BookingWizard
from bookflow.application.use_cases.conflict_resolver import ConflictResolver
from bookflow.application.use_cases.customer_resolver import CustomerResolver
from bookflow.application.use_cases.retry_executor import RetryExecutor
from bookflow.application.use_cases.slot_availability import SlotAvailabilityGateway
from bookflow.domain.entities.tenant import Tenant
from bookflow.infrastructure.scheduling.scheduling_client import SchedulingApiClient
from bookflow.infrastructure.store.memory_availability import MemoryAvailabilityStore
from bookflow.infrastructure.store.memory_catalog import MemoryCatalog, MemoryTenantResolver, seed_demo
from bookflow.infrastructure.store.memory_customers import MemoryCustomerStore
from bookflow.infrastructure.store.memory_sessions import MemoryWizardSessionStore


_session_store: MemoryWizardSessionStore | None = None


def use_memory_backend() -> bool:
    if settings.ENV.lower() in {"dev", "local"}:
        return True
    return not (settings.SCHEDULING_API_BASE_URL and settings.SCHEDULING_API_KEY)


@lru_cache
def get_memory_backend() -> tuple[MemoryTenantResolver, MemoryCatalog, MemoryAvailabilityStore, MemoryCustomerStore]:
    resolver, catalog = seed_demo(settings.DEMO_TENANT_SLUG)
    return resolver, catalog, MemoryAvailabilityStore(), MemoryCustomerStore()


@lru_cache
def get_scheduling_client() -> SchedulingApiClient:
    return SchedulingApiClient()


def get_tenant_resolver() -> TenantResolverPort:
    if use_memory_backend():
        return get_memory_backend()[0]
    return get_scheduling_client()


def get_catalog() -> CatalogPort:
    if use_memory_backend():
        return get_memory_backend()[1]
    return get_scheduling_client()


def get_availability_store() -> AvailabilityStorePort:
    if use_memory_backend():
        return get_memory_backend()[2]
    return get_scheduling_client()


def get_customer_store() -> CustomerStorePort:
    if use_memory_backend():
        return get_memory_backend()[3]
    return get_scheduling_client()


@lru_cache
def get_retry_executor() -> RetryExecutor:
    # shared across sessions so duplicate submissions collapse on their key
    return RetryExecutor(
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        base_delay_ms=settings.RETRY_BASE_DELAY_MS,
    )


def get_session_store() -> WizardSessionStorePort:
    global _session_store
    if _session_store is None:
        _session_store = MemoryWizardSessionStore()
    return _session_store


def _tenant_timezone(tenant: Tenant) -> ZoneInfo:
    name = tenant.timezone or settings.BUSINESS_TIMEZONE
    try:
        return ZoneInfo(name)
    except Exception:
        logging.getLogger(__name__).warning("Unknown timezone, using default", extra={"tenant_id": tenant.id})
        return ZoneInfo(settings.BUSINESS_TIMEZONE)


def build_wizard(tenant: Tenant, session_id: str | None = None) -> BookingWizard:
    store = get_availability_store()
    retry = get_retry_executor()
    gateway = SlotAvailabilityGateway(
        store=store,
        retry=retry,
        timezone=_tenant_timezone(tenant),
        work_start=settings.WORK_START,
        work_end=settings.WORK_END,
        step_minutes=settings.SLOT_STEP_MINUTES,
    )
    return BookingWizard(
        tenant=tenant,
        catalog=get_catalog(),
        availability=gateway,
        store=store,
        customers=CustomerResolver(get_customer_store()),
        conflicts=ConflictResolver(max_alternatives=settings.MAX_ALTERNATIVES),
        retry=retry,
        session_id=session_id or str(uuid.uuid4()),
    )
