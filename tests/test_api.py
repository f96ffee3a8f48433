"""
End-to-end tests of the booking HTTP routes on the in-memory backend.
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from bookflow.core.config import settings
from bookflow.main import ContextFormatter, app, create_app
from bookflow.wiring import dependencies


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "dev")
    monkeypatch.setattr(settings, "RETRY_BASE_DELAY_MS", 0)
    monkeypatch.setattr(dependencies, "_session_store", None)
    dependencies.get_memory_backend.cache_clear()
    dependencies.get_retry_executor.cache_clear()
    with TestClient(app) as client:
        yield client
    dependencies.get_memory_backend.cache_clear()
    dependencies.get_retry_executor.cache_clear()


def _send(client, session_id, **event):
    response = client.post(f"/booking/sessions/{session_id}/events", json={"event": event})
    assert response.status_code == 200, response.text
    return response.json()


def _to_customer(client, session_id):
    _send(client, session_id, type="select_service", service_id="svc-cut")
    _send(client, session_id, type="next")
    _send(client, session_id, type="select_staff", staff_id="staff-ana")
    state = _send(client, session_id, type="next")
    slot = next(s for s in state["grid"] if s["is_available"])
    _send(client, session_id, type="select_slot", start_time=slot["start_time"])
    state = _send(client, session_id, type="next")
    return state, slot


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_catalog_lists_services_and_staff(client):
    response = client.get("/booking/demo/catalog")

    assert response.status_code == 200
    data = response.json()
    assert data["tenant_id"] == "tenant-demo"
    assert [s["id"] for s in data["services"]] == ["svc-beard", "svc-cut", "svc-combo"]
    assert [m["id"] for m in data["staff"]] == ["staff-ana", "staff-bruno"]


def test_unknown_tenant_is_404(client):
    assert client.get("/booking/nowhere/catalog").status_code == 404
    assert client.post("/booking/nowhere/sessions").status_code == 404


def test_unknown_session_is_404(client):
    assert client.get("/booking/sessions/missing").status_code == 404
    response = client.post("/booking/sessions/missing/events", json={"event": {"type": "next"}})
    assert response.status_code == 404


def test_full_booking_flow(client):
    response = client.post("/booking/demo/sessions")
    assert response.status_code == 201
    state = response.json()
    assert state["step"] == "services"
    session_id = state["session_id"]

    state, slot = _to_customer(client, session_id)
    assert state["step"] == "customer"
    assert state["selection"]["slot"]["start_time"] == slot["start_time"]

    state = _send(
        client,
        session_id,
        type="submit_customer_info",
        name="Maria Silva",
        phone="(11) 98765-4321",
        email="maria@example.com",
    )

    assert state["step"] == "confirmation"
    assert state["error"] is None
    booking = state["booking"]
    assert booking["service_id"] == "svc-cut"
    assert booking["staff_id"] == "staff-ana"
    assert booking["status"] == "pending"
    assert booking["start_time"] == slot["start_time"]

    fetched = client.get(f"/booking/sessions/{session_id}").json()
    assert fetched["booking"]["id"] == booking["id"]


def test_booked_slot_is_reported_taken_to_next_session(client):
    first = client.post("/booking/demo/sessions").json()["session_id"]
    _, slot = _to_customer(client, first)
    _send(client, first, type="submit_customer_info", name="Maria", phone="11987654321")

    second = client.post("/booking/demo/sessions").json()["session_id"]
    _send(client, second, type="select_service", service_id="svc-cut")
    _send(client, second, type="next")
    _send(client, second, type="select_staff", staff_id="staff-ana")
    state = _send(client, second, type="next")

    taken = next(s for s in state["grid"] if s["start_time"] == slot["start_time"])
    assert taken["is_available"] is False


def test_validation_errors_are_part_of_the_state(client):
    session_id = client.post("/booking/demo/sessions").json()["session_id"]
    _to_customer(client, session_id)

    state = _send(client, session_id, type="submit_customer_info", name="", phone="11987654321")

    assert state["step"] == "customer"
    assert state["error"]["kind"] == "validation_error"
    assert state["error"]["field"] == "name"


def test_malformed_event_is_422(client):
    session_id = client.post("/booking/demo/sessions").json()["session_id"]

    response = client.post(f"/booking/sessions/{session_id}/events", json={"event": {"type": "teleport"}})

    assert response.status_code == 422


def test_delete_session(client):
    session_id = client.post("/booking/demo/sessions").json()["session_id"]

    assert client.delete(f"/booking/sessions/{session_id}").status_code == 204
    assert client.get(f"/booking/sessions/{session_id}").status_code == 404
    assert client.delete(f"/booking/sessions/{session_id}").status_code == 404


def test_log_lines_carry_booking_context():
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(message)s"))
    record = logging.LogRecord("bookflow", logging.INFO, __file__, 1, "Booking created", None, None)
    record.session_id = "s-1"
    record.slot_start = "2026-10-19T09:00:00-03:00"
    record.error = ""

    line = handler.format(record)

    assert line == "INFO:Booking created | session_id=s-1 slot_start=2026-10-19T09:00:00-03:00"


def test_app_factory_mounts_booking_routes():
    paths = {route.path for route in create_app().routes}

    assert "/health" in paths
    assert "/booking/sessions/{session_id}/events" in paths
