# This project was developed with assistance from AI tools.
"""Audit trail routes."""

from fastapi import APIRouter, Depends
from intake_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.audit import AuditChainResponse, AuditEventListResponse, AuditEventResponse
from ..services.audit import get_events_for_document, verify_audit_chain

router = APIRouter()


@router.get("/documents/{document_id}/audit", response_model=AuditEventListResponse)
async def get_document_audit(
    document_id: int,
    session: AsyncSession = Depends(get_db),
) -> AuditEventListResponse:
    """Upload and review history of one document."""
    events = await get_events_for_document(session, document_id)
    items = [AuditEventResponse.model_validate(e) for e in events]
    return AuditEventListResponse(data=items, count=len(items))


@router.get("/audit/verify", response_model=AuditChainResponse)
async def verify_chain(session: AsyncSession = Depends(get_db)) -> AuditChainResponse:
    """Recompute the audit hash chain and report the first break, if any."""
    return AuditChainResponse(**await verify_audit_chain(session))
