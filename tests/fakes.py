from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal

from bookflow.application.exceptions import BookingConflictError, TransientServiceError
from bookflow.application.ports.availability_store import AvailabilityStorePort


class FakeAvailabilityStore(AvailabilityStorePort):
    """
    Scriptable calendar. Slots are addressed by their "HH:MM" start label.

    - taken: labels reported as not available
    - failing: labels whose check raises TransientServiceError every time
    - flaky: label -> number of failures before the check succeeds
    - delays: label -> seconds to sleep before answering
    - gate / staff_gates: events a check waits on before answering
    - create_gate: event create_booking waits on; a taken label conflicts
    """

    def __init__(
        self,
        taken: set[str] | None = None,
        failing: set[str] | None = None,
        flaky: dict[str, int] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.taken = set(taken or ())
        self.failing = set(failing or ())
        self.flaky = dict(flaky or {})
        self.delays = dict(delays or {})
        self.fail_all = False
        self.gate: asyncio.Event | None = None
        self.staff_gates: dict[str, asyncio.Event] = {}
        self.create_gate: asyncio.Event | None = None
        self.check_calls: list[tuple[str, str]] = []
        self.created: list[dict[str, object]] = []
        self.create_failures = 0
        self.conflict_on_create = False

    async def check(self, tenant_id: str, staff_id: str, start_iso: str, end_iso: str) -> bool:
        label = datetime.fromisoformat(start_iso).strftime("%H:%M")
        self.check_calls.append((staff_id, label))
        if self.gate is not None:
            await self.gate.wait()
        if staff_id in self.staff_gates:
            await self.staff_gates[staff_id].wait()
        await asyncio.sleep(self.delays.get(label, 0))
        if self.fail_all or label in self.failing:
            raise TransientServiceError("database")
        if self.flaky.get(label, 0) > 0:
            self.flaky[label] -= 1
            raise TransientServiceError("database")
        return label not in self.taken

    async def create_booking(
        self,
        tenant_id: str,
        customer_id: str,
        service_id: str,
        staff_id: str,
        start_iso: str,
        end_iso: str,
        price: Decimal,
        notes: str | None = None,
    ) -> str:
        await asyncio.sleep(0)
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.create_failures > 0:
            self.create_failures -= 1
            raise TransientServiceError("database")
        label = datetime.fromisoformat(start_iso).strftime("%H:%M")
        if self.conflict_on_create or label in self.taken:
            raise BookingConflictError()
        self.created.append(
            {
                "tenant_id": tenant_id,
                "customer_id": customer_id,
                "service_id": service_id,
                "staff_id": staff_id,
                "start": start_iso,
                "end": end_iso,
                "price": price,
                "notes": notes,
            }
        )
        self.taken.add(label)
        return f"booking-{len(self.created)}"

    def checks_for(self, label: str) -> int:
        return sum(1 for _, checked in self.check_calls if checked == label)


async def no_sleep(seconds: float) -> None:
    await asyncio.sleep(0)
