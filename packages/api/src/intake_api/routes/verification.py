# This project was developed with assistance from AI tools.
"""Reviewer verification queue routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from intake_db import SessionLocal, get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser
from ..schemas.document import (
    DocumentRecordResponse,
    DownloadUrlResponse,
    RejectRequest,
    VerificationQueueResponse,
    VerifyRequest,
)
from ..services import verification as verification_service
from ..services.changes import LEAD_DOCUMENTS, ChangeNotifier
from ..services.verification import (
    DocumentNotFound,
    InvalidVerificationTransition,
    RejectionReasonRequired,
)
from ._live import get_change_notifier, stream_refreshes

logger = logging.getLogger(__name__)

router = APIRouter()


def _document_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")


@router.get("/verification-queue", response_model=VerificationQueueResponse)
async def get_verification_queue(
    limit: int = Query(default=settings.VERIFICATION_QUEUE_LIMIT, ge=1, le=500),
    session: AsyncSession = Depends(get_db),
) -> VerificationQueueResponse:
    """Documents awaiting human review, newest upload first."""
    items = await verification_service.list_pending(session, limit=limit)
    return VerificationQueueResponse(data=items, count=len(items))


async def _queue_snapshot() -> dict:
    async with SessionLocal() as session:
        items = await verification_service.list_pending(
            session, limit=settings.VERIFICATION_QUEUE_LIMIT
        )
    queue = VerificationQueueResponse(data=items, count=len(items))
    return {"type": "verification_queue", **queue.model_dump(mode="json")}


@router.websocket("/verification-queue/ws")
async def verification_queue_ws(websocket: WebSocket) -> None:
    """Push the pending list on connect and whenever a document changes."""
    await stream_refreshes(websocket, [LEAD_DOCUMENTS], _queue_snapshot)


@router.post("/documents/{document_id}/verify", response_model=DocumentRecordResponse)
async def verify_document(
    document_id: int,
    user: CurrentUser,
    body: VerifyRequest | None = None,
    session: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
) -> DocumentRecordResponse:
    """Accept a pending document. Repeating the call is harmless."""
    try:
        doc = await verification_service.verify_document(
            session, notifier, user, document_id, notes=body.notes if body else None
        )
    except DocumentNotFound as exc:
        raise _document_not_found() from exc
    except InvalidVerificationTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return DocumentRecordResponse.model_validate(doc)


@router.post("/documents/{document_id}/reject", response_model=DocumentRecordResponse)
async def reject_document(
    document_id: int,
    body: RejectRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
) -> DocumentRecordResponse:
    """Reject a document. A reason is required and shown to the uploader."""
    try:
        doc = await verification_service.reject_document(
            session, notifier, user, document_id, notes=body.notes
        )
    except RejectionReasonRequired as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except DocumentNotFound as exc:
        raise _document_not_found() from exc
    except InvalidVerificationTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return DocumentRecordResponse.model_validate(doc)


@router.get("/documents/{document_id}/download-url", response_model=DownloadUrlResponse)
async def get_document_download_url(
    document_id: int,
    session: AsyncSession = Depends(get_db),
) -> DownloadUrlResponse:
    """Short-lived signed link to the stored file."""
    try:
        url = await verification_service.get_download_url(
            session, document_id, expires_in=settings.SIGNED_URL_TTL_SECONDS
        )
    except DocumentNotFound as exc:
        raise _document_not_found() from exc
    return DownloadUrlResponse(url=url, expires_in=settings.SIGNED_URL_TTL_SECONDS)
