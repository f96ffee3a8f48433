from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bookflow.domain.entities.booking import Booking
from bookflow.domain.entities.booking_selection import BookingSelection
from bookflow.domain.entities.time_slot import TimeSlot


class WizardStep(str, Enum):
    SERVICES = "services"
    STAFF = "staff"
    DATETIME = "datetime"
    CUSTOMER = "customer"
    CONFIRMATION = "confirmation"

    @property
    def index(self) -> int:
        return list(WizardStep).index(self)

    def previous(self) -> WizardStep:
        steps = list(WizardStep)
        return steps[max(self.index - 1, 0)]


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.SERVICES
    selection: BookingSelection = BookingSelection()
    error: Exception | None = None
    alternatives: tuple[TimeSlot, ...] = ()
    pending: str | None = None  # "checking_availability" | "submitting"
    grid: tuple[TimeSlot, ...] | None = None
    booking: Booking | None = None
