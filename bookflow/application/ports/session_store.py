from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookflow.application.use_cases.booking_wizard import BookingWizard


class WizardSessionStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str) -> BookingWizard | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, session_id: str, wizard: BookingWizard) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        raise NotImplementedError
