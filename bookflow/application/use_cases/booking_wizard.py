from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Awaitable, Callable

from bookflow.application.exceptions import (
    BookingConflictError,
    NotFoundError,
    TransientServiceError,
    ValidationError,
)
from bookflow.application.ports.availability_store import AvailabilityStorePort
from bookflow.application.ports.catalog import CatalogPort
from bookflow.application.use_cases.conflict_resolver import ConflictResolver
from bookflow.application.use_cases.customer_resolver import CustomerResolver
from bookflow.application.use_cases.retry_executor import RetryExecutor
from bookflow.application.use_cases.slot_availability import SlotAvailabilityGateway
from bookflow.application.utils.booking_summary import BookingSummary, build_summary
from bookflow.application.utils.time_grid import to_iso
from bookflow.application.utils.validation import normalize_phone, validate_customer_info
from bookflow.domain.entities.booking import Booking
from bookflow.domain.entities.catalog import Service, StaffMember
from bookflow.domain.entities.customer import CustomerInfo
from bookflow.domain.entities.tenant import Tenant
from bookflow.domain.entities.time_slot import TimeSlot
from bookflow.domain.entities.wizard_events import (
    Back,
    Next,
    Reset,
    Retry,
    SelectAlternative,
    SelectDate,
    SelectService,
    SelectSlot,
    SelectStaff,
    SubmitCustomerInfo,
    WizardEvent,
)
from bookflow.domain.entities.wizard_state import WizardState, WizardStep

PENDING_CHECKING = "checking_availability"
PENDING_SUBMITTING = "submitting"


def booking_key(tenant_id: str, staff_id: str, start: datetime, phone: str) -> str:
    # one customer asking for one slot; other customers race through the store
    return f"booking:{tenant_id}:{staff_id}:{to_iso(start)}:{normalize_phone(phone)}"


class BookingWizard:
    """
    Step state machine for one booking session:
    services -> staff -> datetime -> customer -> confirmation.

    The wizard is the only writer of its BookingSelection. Events are applied
    one at a time, but an event may suspend on a store call while another one
    arrives; grid results carry a staleness token and are dropped when any
    staff/date/service change or navigation happened in between.
    """

    def __init__(
        self,
        tenant: Tenant,
        catalog: CatalogPort,
        availability: SlotAvailabilityGateway,
        store: AvailabilityStorePort,
        customers: CustomerResolver,
        conflicts: ConflictResolver,
        retry: RetryExecutor,
        clock: Callable[[], datetime] | None = None,
        session_id: str | None = None,
    ) -> None:
        self._tenant = tenant
        self._catalog = catalog
        self._availability = availability
        self._store = store
        self._customers = customers
        self._conflicts = conflicts
        self._retry = retry
        self._clock = clock or (lambda: datetime.now(availability.timezone))
        self._session_id = session_id
        self._state = WizardState()
        self._token = 0
        self._datetime_staff_id: str | None = None
        self._last_failed: WizardEvent | None = None
        self._handlers: dict[type, Callable[[WizardEvent], Awaitable[None]]] = {
            SelectService: self._on_select_service,
            SelectStaff: self._on_select_staff,
            SelectDate: self._on_select_date,
            SelectSlot: self._on_select_slot,
            SelectAlternative: self._on_select_alternative,
            SubmitCustomerInfo: self._on_submit,
            Next: self._on_next,
            Back: self._on_back,
            Reset: self._on_reset,
        }
        self._logger = logging.getLogger(__name__)

    @property
    def tenant(self) -> Tenant:
        return self._tenant

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def get_state(self) -> WizardState:
        return self._state

    async def dispatch(self, event: WizardEvent) -> WizardState:
        if self._state.pending == PENDING_SUBMITTING:
            # the form is locked until the outstanding submission settles
            self._logger.info(
                "Event ignored while submitting",
                extra={"session_id": self._session_id, "step": self._state.step.value},
            )
            return self._state

        if isinstance(event, Retry):
            last, self._last_failed = self._last_failed, None
            if last is None:
                return self._state
            event = last

        await self._handle(event)
        return self._state

    async def summary(self) -> BookingSummary | None:
        selection = self._state.selection
        if self._state.booking is not None:
            booking = self._state.booking
            service = await self._require_service(booking.service_id)
            staff = await self._require_staff(booking.staff_id)
            return build_summary(service, staff, booking.start_time, booking.end_time)
        if selection.slot is None or selection.service_id is None or selection.staff_id is None:
            return None
        service = await self._require_service(selection.service_id)
        staff = await self._require_staff(selection.staff_id)
        return build_summary(service, staff, selection.slot.start_time, selection.slot.end_time)

    async def _handle(self, event: WizardEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported wizard event: {type(event).__name__}")

        self._last_failed = None
        self._state = replace(self._state, error=None)
        try:
            await handler(event)
        except ValidationError as e:
            self._state = replace(self._state, error=e)
        except TransientServiceError as e:
            self._last_failed = event
            self._state = replace(self._state, error=e, pending=None)
        except NotFoundError as e:
            self._logger.warning(
                "Booking session reset, resource vanished",
                extra={"session_id": self._session_id, "error": str(e)},
            )
            self._restart(error=e)

    # -- selections -----------------------------------------------------

    async def _on_select_service(self, event: SelectService) -> None:
        if self._state.step != WizardStep.SERVICES:
            raise ValidationError("service_id", "Go back to the services step to change the service")
        await self._require_service(event.service_id)

        if event.service_id == self._state.selection.service_id:
            return
        self._invalidate_grid()
        self._state = replace(
            self._state,
            selection=self._state.selection.with_service(event.service_id),
            grid=None,
            alternatives=(),
        )

    async def _on_select_staff(self, event: SelectStaff) -> None:
        step = self._state.step
        if step not in (WizardStep.STAFF, WizardStep.DATETIME):
            raise ValidationError("staff_id", "Staff can only be chosen on the staff or date steps")
        if event.staff_id == self._state.selection.staff_id:
            return
        await self._require_staff(event.staff_id)

        self._invalidate_grid()
        self._state = replace(
            self._state,
            selection=self._state.selection.with_staff(event.staff_id),
            grid=None,
            alternatives=(),
        )
        if step == WizardStep.DATETIME:
            await self._enter_datetime()

    async def _on_select_date(self, event: SelectDate) -> None:
        step = self._state.step
        if step not in (WizardStep.STAFF, WizardStep.DATETIME):
            raise ValidationError("date", "The date can only be chosen on the staff or date steps")
        if event.date < self._today():
            raise ValidationError("date", "The date cannot be in the past")
        if event.date == self._state.selection.date and self._state.grid is not None:
            return

        self._invalidate_grid()
        self._state = replace(
            self._state,
            selection=self._state.selection.with_date(event.date),
            grid=None,
            alternatives=(),
        )
        if step == WizardStep.DATETIME:
            await self._enter_datetime()

    async def _on_select_slot(self, event: SelectSlot) -> None:
        if self._state.step != WizardStep.DATETIME:
            raise ValidationError("slot", "Time slots can only be chosen on the date step")
        slot = self._slot_from_grid(event.start_time)
        if slot is None:
            raise ValidationError("slot", "Unknown time slot")
        if not slot.is_available:
            raise ValidationError("slot", "This time slot is not available")

        self._state = replace(
            self._state,
            selection=self._state.selection.with_slot(slot),
            alternatives=(),
        )

    async def _on_select_alternative(self, event: SelectAlternative) -> None:
        if self._state.step != WizardStep.DATETIME:
            raise ValidationError("slot", "No alternatives to choose from")
        slot = next((s for s in self._state.alternatives if s.start_time == event.start_time), None)
        if slot is None:
            raise ValidationError("slot", "Not one of the suggested alternatives")

        # customer data typed before the conflict is kept
        self._state = replace(
            self._state,
            step=WizardStep.CUSTOMER,
            selection=self._state.selection.with_slot(slot),
            alternatives=(),
        )

    # -- navigation -----------------------------------------------------

    async def _on_next(self, event: Next) -> None:
        step = self._state.step
        selection = self._state.selection

        if step == WizardStep.SERVICES:
            if not selection.service_id:
                raise ValidationError("service_id", "Select a service")
            await self._require_service(selection.service_id)
            self._invalidate_grid()
            self._state = replace(
                self._state,
                step=WizardStep.STAFF,
                selection=replace(selection, staff_id=None, slot=None),
                grid=None,
            )
            self._datetime_staff_id = None
        elif step == WizardStep.STAFF:
            if not selection.staff_id:
                raise ValidationError("staff_id", "Select a professional")
            await self._enter_datetime()
        elif step == WizardStep.DATETIME:
            if selection.slot is None:
                raise ValidationError("slot", "Select a time slot")
            if not selection.slot.is_available:
                raise ValidationError("slot", "This time slot is not available")
            self._state = replace(self._state, step=WizardStep.CUSTOMER, alternatives=())
        elif step == WizardStep.CUSTOMER:
            raise ValidationError("customer", "Submit your contact details to continue")

    async def _on_back(self, event: Back) -> None:
        step = self._state.step
        if step in (WizardStep.SERVICES, WizardStep.CONFIRMATION):
            return
        if step == WizardStep.CUSTOMER:
            # slots may have changed since the grid was fetched
            await self._enter_datetime()
            return

        self._invalidate_grid()
        self._state = replace(self._state, step=step.previous(), alternatives=())

    async def _on_reset(self, event: Reset) -> None:
        self._restart()

    # -- datetime entry -------------------------------------------------

    async def _enter_datetime(self) -> None:
        """
        Entry action of the datetime step: fetch a fresh grid. The step only
        changes once the grid arrived; a failure leaves the previous step in
        place with the error attached.
        """
        selection = self._state.selection
        if selection.service_id is None or selection.staff_id is None:
            raise ValidationError("staff_id", "Select a service and a professional first")
        if self._datetime_staff_id is not None and self._datetime_staff_id != selection.staff_id:
            selection = replace(selection, slot=None)

        day = selection.date or self._today()
        grid = await self._load_grid(selection.service_id, selection.staff_id, day)
        if grid is None:
            return

        slot = selection.slot
        if slot is not None:
            slot = next((s for s in grid if s == slot), None)

        self._datetime_staff_id = selection.staff_id
        self._state = replace(
            self._state,
            step=WizardStep.DATETIME,
            selection=replace(selection, date=day, slot=slot),
            grid=tuple(grid),
        )

    async def _load_grid(self, service_id: str, staff_id: str, day: date) -> list[TimeSlot] | None:
        """Fetch the grid; None means the result went stale while in flight."""
        service = await self._require_service(service_id)
        token = self._invalidate_grid()
        self._state = replace(self._state, pending=PENDING_CHECKING)
        try:
            grid = await self._availability.fetch_slot_grid(
                self._tenant.id, staff_id, day, service.duration_minutes
            )
        except Exception:
            if token != self._token:
                self._logger.debug("Stale grid failure ignored", extra={"session_id": self._session_id})
                return None
            self._state = replace(self._state, pending=None)
            raise

        if token != self._token:
            self._logger.debug(
                "Stale slot grid discarded",
                extra={"session_id": self._session_id, "staff_id": staff_id},
            )
            return None
        self._state = replace(self._state, pending=None)
        return grid

    # -- submission -----------------------------------------------------

    async def _on_submit(self, event: SubmitCustomerInfo) -> None:
        if self._state.step != WizardStep.CUSTOMER:
            raise ValidationError("customer", "Contact details are submitted on the customer step")

        info = CustomerInfo(name=event.name, phone=event.phone, email=event.email, notes=event.notes)
        self._state = replace(self._state, selection=self._state.selection.with_customer(info))

        errors = validate_customer_info(info)
        if errors:
            raise errors[0]

        selection = self._state.selection
        slot = selection.slot
        if slot is None or selection.service_id is None or selection.staff_id is None:
            raise ValidationError("slot", "Select a time slot")

        # a grid still loading from Back must not land on top of the submission
        self._invalidate_grid()
        self._state = replace(self._state, pending=PENDING_SUBMITTING)
        self._logger.info(
            "Submitting booking",
            extra={
                "session_id": self._session_id,
                "tenant_id": self._tenant.id,
                "staff_id": slot.staff_id,
                "slot_start": to_iso(slot.start_time),
            },
        )
        try:
            service = await self._require_service(selection.service_id)
            await self._require_staff(selection.staff_id)
            booking = await self._retry.execute(
                booking_key(self._tenant.id, slot.staff_id, slot.start_time, info.phone),
                lambda: self._submit_once(service, slot, info),
            )
        except BookingConflictError as e:
            await self._handle_conflict(slot, e)
            return
        except BaseException:
            self._state = replace(self._state, pending=None)
            raise

        self._invalidate_grid()
        self._last_failed = None
        self._state = WizardState(step=WizardStep.CONFIRMATION, booking=booking)
        self._logger.info(
            "Booking created",
            extra={"session_id": self._session_id, "tenant_id": self._tenant.id, "slot_start": to_iso(slot.start_time)},
        )

    async def _submit_once(self, service: Service, slot: TimeSlot, info: CustomerInfo) -> Booking:
        # re-check right before committing, the grid may be minutes old
        if not await self._availability.check_availability(
            self._tenant.id, slot.staff_id, slot.start_time, slot.end_time
        ):
            raise BookingConflictError()

        customer_id = await self._customers.resolve(
            self._tenant.id,
            info.phone,
            info.name,
            info.email or None,
            preferred_staff_id=slot.staff_id,
        )
        booking_id = await self._store.create_booking(
            tenant_id=self._tenant.id,
            customer_id=customer_id,
            service_id=service.id,
            staff_id=slot.staff_id,
            start_iso=to_iso(slot.start_time),
            end_iso=to_iso(slot.end_time),
            price=service.price,
            notes=info.notes.strip() or None,
        )
        return Booking(
            id=booking_id,
            tenant_id=self._tenant.id,
            service_id=service.id,
            staff_id=slot.staff_id,
            customer_id=customer_id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            price=service.price,
            notes=info.notes.strip() or None,
        )

    async def _handle_conflict(self, rejected: TimeSlot, error: BookingConflictError) -> None:
        grid = self._state.grid or ()
        alternatives = self._conflicts.alternatives(rejected, grid)
        error.alternatives = list(alternatives)
        grid = tuple(s.with_availability(False) if s == rejected else s for s in grid)

        self._logger.info(
            "Booking conflict, offering alternatives",
            extra={
                "session_id": self._session_id,
                "slot_start": to_iso(rejected.start_time),
                "staff_id": rejected.staff_id,
            },
        )
        self._datetime_staff_id = rejected.staff_id
        self._state = replace(
            self._state,
            step=WizardStep.DATETIME,
            selection=self._state.selection.with_slot(None),
            grid=grid,
            alternatives=tuple(alternatives),
            error=error,
            pending=None,
        )

        # re-entering the datetime step refreshes the grid; the suggestions stay
        selection = self._state.selection
        day = selection.date or rejected.start_time.date()
        try:
            fresh = await self._load_grid(selection.service_id or "", rejected.staff_id, day)
        except TransientServiceError as e:
            self._logger.warning(
                "Grid refresh after conflict failed",
                extra={"session_id": self._session_id, "error": str(e)},
            )
            return
        if fresh is not None:
            self._state = replace(self._state, grid=tuple(fresh))

    # -- helpers --------------------------------------------------------

    def _invalidate_grid(self) -> int:
        self._token += 1
        if self._state.pending == PENDING_CHECKING:
            self._state = replace(self._state, pending=None)
        return self._token

    def _restart(self, error: Exception | None = None) -> None:
        self._invalidate_grid()
        self._datetime_staff_id = None
        self._last_failed = None
        self._state = WizardState(error=error)

    def _slot_from_grid(self, start_time: datetime) -> TimeSlot | None:
        staff_id = self._state.selection.staff_id
        for slot in self._state.grid or ():
            if slot.staff_id == staff_id and slot.start_time == start_time:
                return slot
        return None

    def _today(self) -> date:
        return self._clock().astimezone(self._availability.timezone).date()

    async def _require_service(self, service_id: str) -> Service:
        service = await self._catalog.get_service(self._tenant.id, service_id)
        if service is None or not service.is_active:
            raise NotFoundError("Service", service_id)
        return service

    async def _require_staff(self, staff_id: str) -> StaffMember:
        staff = await self._catalog.get_staff(self._tenant.id, staff_id)
        if staff is None or not staff.is_active:
            raise NotFoundError("Staff", staff_id)
        return staff
