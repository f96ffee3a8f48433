from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING

from bookflow.application.ports.session_store import WizardSessionStorePort

if TYPE_CHECKING:
    from bookflow.application.use_cases.booking_wizard import BookingWizard


class MemoryWizardSessionStore(WizardSessionStorePort):
    def __init__(self, session_limit: int = 1000) -> None:
        self._sessions: OrderedDict[str, BookingWizard] = OrderedDict()
        self._session_limit = session_limit

    def get(self, session_id: str) -> BookingWizard | None:
        wizard = self._sessions.get(session_id)
        if wizard is not None:
            self._sessions.move_to_end(session_id)
        return wizard

    def save(self, session_id: str, wizard: BookingWizard) -> None:
        self._sessions[session_id] = wizard
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self._session_limit:
            self._sessions.popitem(last=False)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
