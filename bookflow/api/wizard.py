from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response

from bookflow.api.schemas import CatalogSchema, EventRequestSchema, ServiceSchema, StaffSchema, WizardStateSchema
from bookflow.application.exceptions import NotFoundError, TransientServiceError
from bookflow.application.ports.catalog import CatalogPort
from bookflow.application.ports.session_store import WizardSessionStorePort
from bookflow.application.ports.tenant_resolver import TenantResolverPort
from bookflow.application.use_cases.booking_wizard import BookingWizard
from bookflow.wiring.dependencies import build_wizard, get_catalog, get_session_store, get_tenant_resolver


router = APIRouter(prefix="/booking")
logger = logging.getLogger(__name__)


def _require_session(session_id: str, sessions: WizardSessionStorePort) -> BookingWizard:
    wizard = sessions.get(session_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail="Booking session not found")
    return wizard


@router.get("/{slug}/catalog", response_model=CatalogSchema)
async def get_tenant_catalog(
    slug: str,
    tenants: TenantResolverPort = Depends(get_tenant_resolver),
    catalog: CatalogPort = Depends(get_catalog),
):
    try:
        tenant = await tenants.resolve_by_slug(slug)
        services = await catalog.list_services(tenant.id)
        staff = await catalog.list_staff(tenant.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except TransientServiceError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return CatalogSchema(
        tenant_id=tenant.id,
        tenant_name=tenant.name,
        services=[ServiceSchema.from_service(s) for s in services],
        staff=[StaffSchema.from_staff(m) for m in staff],
    )


@router.post("/{slug}/sessions", response_model=WizardStateSchema, status_code=201)
async def create_session(
    slug: str,
    tenants: TenantResolverPort = Depends(get_tenant_resolver),
    sessions: WizardSessionStorePort = Depends(get_session_store),
):
    try:
        tenant = await tenants.resolve_by_slug(slug)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except TransientServiceError as e:
        raise HTTPException(status_code=503, detail=e.message)

    session_id = str(uuid.uuid4())
    wizard = build_wizard(tenant, session_id=session_id)
    sessions.save(session_id, wizard)
    logger.info("Booking session started", extra={"session_id": session_id, "tenant_id": tenant.id})
    return WizardStateSchema.from_state(session_id, wizard.get_state())


@router.get("/sessions/{session_id}", response_model=WizardStateSchema)
async def get_session(
    session_id: str,
    sessions: WizardSessionStorePort = Depends(get_session_store),
):
    wizard = _require_session(session_id, sessions)
    return WizardStateSchema.from_state(session_id, wizard.get_state())


@router.post("/sessions/{session_id}/events", response_model=WizardStateSchema)
async def dispatch_event(
    session_id: str,
    req: EventRequestSchema,
    sessions: WizardSessionStorePort = Depends(get_session_store),
):
    wizard = _require_session(session_id, sessions)
    state = await wizard.dispatch(req.event.to_event())
    logger.info(
        "Wizard event applied",
        extra={"session_id": session_id, "step": state.step.value},
    )
    return WizardStateSchema.from_state(session_id, state)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    sessions: WizardSessionStorePort = Depends(get_session_store),
) -> Response:
    if not sessions.delete(session_id):
        raise HTTPException(status_code=404, detail="Booking session not found")
    return Response(status_code=204)
