from __future__ import annotations

import logging
from typing import Callable


class MobileExpansionController:
    """
    At most one professional card is expanded on narrow viewports.

    The expanded card is a single reference, so switching from one card to
    another replaces it in one assignment; there is never a moment with two
    cards open.
    """

    def __init__(self, on_change: Callable[[str | None], None] | None = None) -> None:
        self._expanded: str | None = None
        self._on_change = on_change
        self._logger = logging.getLogger(__name__)

    @property
    def expanded(self) -> str | None:
        return self._expanded

    def is_expanded(self, card_id: str) -> bool:
        return self._expanded == card_id

    def expanded_cards(self) -> list[str]:
        return [self._expanded] if self._expanded is not None else []

    def select(self, card_id: str) -> str | None:
        """Expand card_id, or collapse it when it is already the open one."""
        self._expanded = None if self._expanded == card_id else card_id
        self._logger.debug("Card expansion changed", extra={"staff_id": self._expanded})
        if self._on_change is not None:
            self._on_change(self._expanded)
        return self._expanded

    def collapse_all(self) -> None:
        if self._expanded is None:
            return
        self._expanded = None
        if self._on_change is not None:
            self._on_change(None)
