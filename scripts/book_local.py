#!/usr/bin/env python3
"""
Interactive local booking harness (no HTTP).

Usage:
  python3 scripts/book_local.py [tenant-slug]

Drives the same BookingWizard the API uses, on whatever backend the settings
select (the in-memory demo barbershop by default). Type commands such as:

  service svc-cut | staff staff-ana | date 2026-10-20 | slot 09:30
  alt 10:00 | info Maria;11987654321;maria@example.com;notes
  next | back | retry | reset | /new | /quit
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bookflow.application.use_cases.booking_wizard import BookingWizard  # noqa: E402
from bookflow.core.config import settings  # noqa: E402
from bookflow.domain.entities.wizard_events import (  # noqa: E402
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
from bookflow.domain.entities.wizard_state import WizardState  # noqa: E402
from bookflow.wiring.dependencies import build_wizard, get_catalog, get_tenant_resolver  # noqa: E402


def _print_header(wizard: BookingWizard) -> None:
    print("\nLocal Booking Harness")
    print("-" * 60)
    print(f"tenant: {wizard.tenant.name} ({wizard.tenant.slug})")
    print(f"session_id: {wizard.session_id}")
    print("Commands: service, staff, date, slot, alt, info, next, back, retry, reset, /new, /quit")
    print("-" * 60)


def _slot_time(hhmm: str, pool) -> datetime | None:
    for slot in pool or ():
        if slot.label == hhmm:
            return slot.start_time
    return None


def _parse(wizard: BookingWizard, line: str) -> WizardEvent | None:
    cmd, _, arg = line.partition(" ")
    arg = arg.strip()
    state = wizard.get_state()

    if cmd == "service":
        return SelectService(arg)
    if cmd == "staff":
        return SelectStaff(arg)
    if cmd == "date":
        return SelectDate(date.fromisoformat(arg))
    if cmd in ("slot", "alt"):
        pool = state.grid if cmd == "slot" else state.alternatives
        start = _slot_time(arg, pool)
        if start is None:
            print(f"No {cmd} at {arg}")
            return None
        return SelectSlot(start) if cmd == "slot" else SelectAlternative(start)
    if cmd == "info":
        parts = [p.strip() for p in arg.split(";")] + ["", "", "", ""]
        return SubmitCustomerInfo(name=parts[0], phone=parts[1], email=parts[2], notes=parts[3])
    simple = {"next": Next, "back": Back, "retry": Retry, "reset": Reset}
    if cmd in simple:
        return simple[cmd]()

    print(f"Unknown command: {cmd}")
    return None


async def _print_state(wizard: BookingWizard, state: WizardState) -> None:
    selection = state.selection
    print("\n--- State ---")
    print(f"step: {state.step.value}")
    print(f"service: {selection.service_id}  staff: {selection.staff_id}  date: {selection.date}")
    if selection.slot is not None:
        print(f"slot: {selection.slot.label}")
    if state.error is not None:
        print(f"error: {state.error}")

    if state.grid is not None and state.step.value == "datetime":
        free = [s.label for s in state.grid if s.is_available]
        print(f"free slots: {' '.join(free) or '(none)'}")
    if state.alternatives:
        print(f"alternatives: {' '.join(s.label for s in state.alternatives)}")

    if state.booking is not None:
        summary = await wizard.summary()
        print("\n--- Booking confirmed ---")
        print(f"id: {state.booking.id}")
        if summary is not None:
            print(f"{summary.service_name} with {summary.staff_name}")
            print(f"{summary.date} {summary.start}-{summary.end}  R$ {summary.price}")
    print("-" * 60)


async def _print_catalog(tenant_id: str) -> None:
    catalog = get_catalog()
    print("services:")
    for service in await catalog.list_services(tenant_id):
        print(f"  {service.id}: {service.name} ({service.duration_minutes} min, R$ {service.price})")
    print("staff:")
    for member in await catalog.list_staff(tenant_id):
        print(f"  {member.id}: {member.display_name}")


async def main() -> None:
    slug = sys.argv[1] if len(sys.argv) > 1 else settings.DEMO_TENANT_SLUG
    tenant = await get_tenant_resolver().resolve_by_slug(slug)
    wizard = build_wizard(tenant)
    _print_header(wizard)
    await _print_catalog(tenant.id)

    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not line:
            continue
        if line in ("/quit", "/exit"):
            print("Bye!")
            return
        if line == "/new":
            wizard = build_wizard(tenant)
            print(f"New session_id: {wizard.session_id}")
            continue

        try:
            event = _parse(wizard, line)
        except ValueError as e:
            print(f"Invalid input: {e}")
            continue
        if event is None:
            continue

        state = await wizard.dispatch(event)
        await _print_state(wizard, state)


if __name__ == "__main__":
    asyncio.run(main())
