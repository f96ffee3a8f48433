from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from bookflow.application.exceptions import SlotGridUnavailableError, TransientServiceError
from bookflow.application.ports.availability_store import AvailabilityStorePort
from bookflow.application.use_cases.retry_executor import RetryExecutor
from bookflow.application.utils.time_grid import parse_hhmm, slot_starts, to_iso
from bookflow.domain.entities.time_slot import TimeSlot


def availability_key(tenant_id: str, staff_id: str, start: datetime, end: datetime) -> str:
    return f"availability:{tenant_id}:{staff_id}:{to_iso(start)}:{to_iso(end)}"


class SlotAvailabilityGateway:
    """Request/response access to the store's "is this interval free" check. Holds no slot state."""

    def __init__(
        self,
        store: AvailabilityStorePort,
        retry: RetryExecutor,
        timezone: ZoneInfo,
        work_start: str = "08:00",
        work_end: str = "18:00",
        step_minutes: int = 30,
    ) -> None:
        self._store = store
        self._retry = retry
        self._timezone = timezone
        self._work_start = work_start
        self._work_end = work_end
        self._step_minutes = step_minutes
        self._logger = logging.getLogger(__name__)

    @property
    def timezone(self) -> ZoneInfo:
        return self._timezone

    async def check_availability(self, tenant_id: str, staff_id: str, start: datetime, end: datetime) -> bool:
        return await self._store.check(tenant_id, staff_id, to_iso(start), to_iso(end))

    async def fetch_slot_grid(
        self,
        tenant_id: str,
        staff_id: str,
        day: date,
        service_duration_min: int,
        work_start: str | None = None,
        work_end: str | None = None,
        step_min: int | None = None,
    ) -> list[TimeSlot]:
        """
        Build the grid for one staff member on one day.

        Checks run concurrently, each with its own retry budget. A slot whose
        check exhausts retries is reported as unavailable; if every check
        failed, SlotGridUnavailableError is raised instead.
        """
        starts = slot_starts(
            day,
            self._timezone,
            parse_hhmm(work_start or self._work_start),
            parse_hhmm(work_end or self._work_end),
            step_min or self._step_minutes,
        )
        if not starts:
            return []

        duration = timedelta(minutes=service_duration_min)
        results = await asyncio.gather(
            *(self._check_with_retry(tenant_id, staff_id, start, start + duration) for start in starts),
            return_exceptions=True,
        )

        grid: list[TimeSlot] = []
        failures = 0
        for start, result in zip(starts, results):
            if isinstance(result, BaseException):
                if not isinstance(result, TransientServiceError):
                    raise result
                failures += 1
                available = False
            else:
                available = bool(result)
            grid.append(TimeSlot(staff_id=staff_id, start_time=start, end_time=start + duration, is_available=available))

        if failures == len(starts):
            self._logger.error(
                "Every availability check failed",
                extra={"tenant_id": tenant_id, "staff_id": staff_id, "error": f"{failures} failures"},
            )
            raise SlotGridUnavailableError()
        if failures:
            self._logger.warning(
                "Slot grid partially degraded",
                extra={"tenant_id": tenant_id, "staff_id": staff_id, "error": f"{failures} failures"},
            )

        grid.sort(key=lambda slot: slot.start_time)
        return grid

    async def _check_with_retry(self, tenant_id: str, staff_id: str, start: datetime, end: datetime) -> bool:
        return await self._retry.execute(
            availability_key(tenant_id, staff_id, start, end),
            lambda: self.check_availability(tenant_id, staff_id, start, end),
        )
