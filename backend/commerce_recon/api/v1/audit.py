"""Audit log endpoints — query reconciliation run events."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.audit_generator.service import AuditService
from commerce_recon.dependencies import get_db
from commerce_recon.schemas.audit import AuditEventListResponse, AuditEventResponse

router = APIRouter()


@router.get("/events", response_model=AuditEventListResponse)
async def list_events(
    entity_type: str | None = None,
    entity_id: str | None = None,
    event_type: str | None = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> AuditEventListResponse:
    """List audit events with optional filtering."""
    events, total = await AuditService.get_events(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type=event_type,
        page=page,
        per_page=per_page,
    )
    return AuditEventListResponse(
        events=[AuditEventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        per_page=per_page,
    )
