from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from bookflow.domain.entities import wizard_events as events
from bookflow.domain.entities.booking import Booking
from bookflow.domain.entities.catalog import Service, StaffMember
from bookflow.domain.entities.time_slot import TimeSlot
from bookflow.domain.entities.wizard_state import WizardState


class SelectServicePayload(BaseModel):
    type: Literal["select_service"]
    service_id: str

    def to_event(self) -> events.WizardEvent:
        return events.SelectService(service_id=self.service_id)


class SelectStaffPayload(BaseModel):
    type: Literal["select_staff"]
    staff_id: str

    def to_event(self) -> events.WizardEvent:
        return events.SelectStaff(staff_id=self.staff_id)


class SelectDatePayload(BaseModel):
    type: Literal["select_date"]
    date: dt.date

    def to_event(self) -> events.WizardEvent:
        return events.SelectDate(date=self.date)


class SelectSlotPayload(BaseModel):
    type: Literal["select_slot"]
    start_time: dt.datetime

    def to_event(self) -> events.WizardEvent:
        return events.SelectSlot(start_time=self.start_time)


class SelectAlternativePayload(BaseModel):
    type: Literal["select_alternative"]
    start_time: dt.datetime

    def to_event(self) -> events.WizardEvent:
        return events.SelectAlternative(start_time=self.start_time)


class SubmitCustomerInfoPayload(BaseModel):
    type: Literal["submit_customer_info"]
    name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""

    def to_event(self) -> events.WizardEvent:
        return events.SubmitCustomerInfo(name=self.name, phone=self.phone, email=self.email, notes=self.notes)


class NavigationPayload(BaseModel):
    type: Literal["next", "back", "retry", "reset"]

    def to_event(self) -> events.WizardEvent:
        return {"next": events.Next, "back": events.Back, "retry": events.Retry, "reset": events.Reset}[self.type]()


EventPayload = Annotated[
    Union[
        SelectServicePayload,
        SelectStaffPayload,
        SelectDatePayload,
        SelectSlotPayload,
        SelectAlternativePayload,
        SubmitCustomerInfoPayload,
        NavigationPayload,
    ],
    Field(discriminator="type"),
]


class EventRequestSchema(BaseModel):
    event: EventPayload


class SlotSchema(BaseModel):
    staff_id: str
    start_time: dt.datetime
    end_time: dt.datetime
    is_available: bool

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> SlotSchema:
        return cls(
            staff_id=slot.staff_id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_available=slot.is_available,
        )


class CustomerSchema(BaseModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""


class SelectionSchema(BaseModel):
    service_id: str | None = None
    staff_id: str | None = None
    date: dt.date | None = None
    slot: SlotSchema | None = None
    customer: CustomerSchema = Field(default_factory=CustomerSchema)


class BookingSchema(BaseModel):
    id: str
    service_id: str
    staff_id: str
    customer_id: str
    start_time: dt.datetime
    end_time: dt.datetime
    status: str
    price: Decimal
    notes: str | None = None

    @classmethod
    def from_booking(cls, booking: Booking) -> BookingSchema:
        return cls(
            id=booking.id,
            service_id=booking.service_id,
            staff_id=booking.staff_id,
            customer_id=booking.customer_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            price=booking.price,
            notes=booking.notes,
        )


class WizardStateSchema(BaseModel):
    session_id: str
    step: str
    pending: str | None = None
    selection: SelectionSchema
    error: dict[str, Any] | None = None
    alternatives: list[SlotSchema] = Field(default_factory=list)
    grid: list[SlotSchema] | None = None
    booking: BookingSchema | None = None

    @classmethod
    def from_state(cls, session_id: str, state: WizardState) -> WizardStateSchema:
        selection = state.selection
        error: dict[str, Any] | None = None
        if state.error is not None:
            to_dict = getattr(state.error, "to_dict", None)
            error = to_dict() if to_dict else {"kind": "error", "message": str(state.error)}
        return cls(
            session_id=session_id,
            step=state.step.value,
            pending=state.pending,
            selection=SelectionSchema(
                service_id=selection.service_id,
                staff_id=selection.staff_id,
                date=selection.date,
                slot=SlotSchema.from_slot(selection.slot) if selection.slot else None,
                customer=CustomerSchema(
                    name=selection.customer.name,
                    phone=selection.customer.phone,
                    email=selection.customer.email,
                    notes=selection.customer.notes,
                ),
            ),
            error=error,
            alternatives=[SlotSchema.from_slot(s) for s in state.alternatives],
            grid=[SlotSchema.from_slot(s) for s in state.grid] if state.grid is not None else None,
            booking=BookingSchema.from_booking(state.booking) if state.booking else None,
        )


class ServiceSchema(BaseModel):
    id: str
    name: str
    duration_min: int
    price: Decimal
    category: str | None = None
    description: str | None = None

    @classmethod
    def from_service(cls, service: Service) -> ServiceSchema:
        return cls(
            id=service.id,
            name=service.name,
            duration_min=service.duration_minutes,
            price=service.price,
            category=service.category,
            description=service.description,
        )


class StaffSchema(BaseModel):
    id: str
    display_name: str
    avatar_url: str | None = None
    role: str | None = None

    @classmethod
    def from_staff(cls, member: StaffMember) -> StaffSchema:
        return cls(id=member.id, display_name=member.display_name, avatar_url=member.avatar_url, role=member.role)


class CatalogSchema(BaseModel):
    tenant_id: str
    tenant_name: str
    services: list[ServiceSchema]
    staff: list[StaffSchema]
