from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookflow.domain.entities.time_slot import TimeSlot


class BookingError(RuntimeError):
    """Base class for every error the booking core surfaces to the UI."""

    kind = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(BookingError):
    """Raised when a required field for the current step is missing or invalid. Never retried."""

    kind = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "field": self.field}


class TransientServiceError(BookingError):
    """Raised when an external store fails (network errors, 5xx). Retryable."""

    kind = "external_service_error"

    def __init__(self, service: str, message: str | None = None, retryable: bool = True) -> None:
        super().__init__(message or "Temporary service failure. Please try again in a moment.")
        self.service = service
        self.retryable = retryable

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "service": self.service, "retryable": self.retryable}


class SlotGridUnavailableError(TransientServiceError):
    """Raised when every availability check of a grid fetch failed."""

    def __init__(self, service: str = "availability") -> None:
        super().__init__(service, "Availability service unreachable. Please retry.")


class BookingConflictError(BookingError):
    """Raised when the store reports the requested slot was taken in the meantime."""

    kind = "booking_conflict"

    def __init__(
        self,
        message: str | None = None,
        alternatives: list[TimeSlot] | None = None,
    ) -> None:
        super().__init__(message or "This time slot is no longer available. Please choose another one.")
        self.alternatives = list(alternatives or [])

    def to_dict(self) -> dict[str, object]:
        return {
            **super().to_dict(),
            "alternatives": [slot.start_time.isoformat() for slot in self.alternatives],
        }


class NotFoundError(BookingError):
    """Raised when a tenant, service or staff member vanished. Fatal to the session."""

    kind = "not_found"

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(f"{resource} '{identifier}' was not found. Please start a new booking.")
        self.resource = resource
        self.identifier = identifier

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "resource": self.resource}
