# This project was developed with assistance from AI tools.
"""Upload lifecycle routes."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from intake_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.upload import UploadEntry
from ..services.changes import ChangeNotifier
from ..services.upload import (
    DocumentTypeNotFound,
    LeadNotFound,
    UploadNotFound,
    get_upload_orchestrator,
)
from ..services.upload_state import InvalidUploadTransition
from ._live import get_change_notifier

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


@router.post(
    "/leads/{lead_id}/uploads",
    response_model=UploadEntry,
    status_code=201,
)
async def start_upload(
    lead_id: int,
    user: CurrentUser,
    file: UploadFile = File(...),
    document_type_id: int = Form(...),
    session: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
) -> UploadEntry:
    """Submit one file for a lead. The returned entry reports where it ended up."""
    file_data = await file.read()
    try:
        return await get_upload_orchestrator().start(
            session,
            notifier,
            user,
            lead_id=lead_id,
            document_type_id=document_type_id,
            filename=file.filename or "document",
            content_type=file.content_type or "application/octet-stream",
            file_data=file_data,
        )
    except LeadNotFound as exc:
        raise _not_found("Lead not found") from exc
    except DocumentTypeNotFound as exc:
        raise _not_found("Document type not found") from exc


@router.get("/leads/{lead_id}/uploads", response_model=list[UploadEntry])
async def list_lead_uploads(lead_id: int) -> list[UploadEntry]:
    """Upload entries this server is tracking for a lead."""
    return get_upload_orchestrator().list_entries(lead_id)


@router.get("/uploads/{correlation_id}", response_model=UploadEntry)
async def get_upload(correlation_id: str) -> UploadEntry:
    try:
        return get_upload_orchestrator().get(correlation_id)
    except UploadNotFound as exc:
        raise _not_found("Upload not found") from exc


@router.post("/uploads/{correlation_id}/override", response_model=UploadEntry)
async def override_upload(
    correlation_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
) -> UploadEntry:
    """Upload a file the classifier rejected, sending it to manual review."""
    try:
        return await get_upload_orchestrator().override(session, notifier, user, correlation_id)
    except UploadNotFound as exc:
        raise _not_found("Upload not found") from exc
    except DocumentTypeNotFound as exc:
        raise _not_found("Document type not found") from exc
    except InvalidUploadTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.post("/uploads/{correlation_id}/retry", response_model=UploadEntry)
async def retry_upload(
    correlation_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
) -> UploadEntry:
    """Re-run an upload that failed in storage or while saving."""
    try:
        return await get_upload_orchestrator().retry(session, notifier, user, correlation_id)
    except UploadNotFound as exc:
        raise _not_found("Upload not found") from exc
    except DocumentTypeNotFound as exc:
        raise _not_found("Document type not found") from exc
    except InvalidUploadTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.delete("/uploads/{correlation_id}", status_code=204)
async def remove_upload(correlation_id: str) -> Response:
    try:
        get_upload_orchestrator().remove(correlation_id)
    except UploadNotFound as exc:
        raise _not_found("Upload not found") from exc
    return Response(status_code=204)
