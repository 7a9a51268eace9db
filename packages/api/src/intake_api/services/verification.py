# This project was developed with assistance from AI tools.
"""Reviewer verification queue.

Human review is the only path that moves a record out of ``pending``.
Every mutation is a single conditional UPDATE so two reviewers acting on
the same record cannot both win a transition.
"""

import logging
from datetime import UTC, datetime

from intake_db import DocumentType, Lead, LeadDocument
from intake_db.enums import VerificationStatus
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.document import PendingDocumentResponse
from .audit import write_audit_event
from .changes import LEAD_DOCUMENTS, ChangeNotifier
from .storage import get_storage_service

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


class DocumentNotFound(Exception):
    """No document record with that id."""


class RejectionReasonRequired(ValueError):
    """Rejections must carry a non-empty note."""


class InvalidVerificationTransition(Exception):
    """The record's current status does not allow the requested action."""


def _to_pending(
    doc: LeadDocument,
    lead: Lead | None,
    doc_type: DocumentType | None,
) -> PendingDocumentResponse:
    return PendingDocumentResponse(
        id=doc.id,
        lead_id=doc.lead_id,
        case_id=(lead.case_id if lead else None) or UNKNOWN,
        student_name=(lead.student_name if lead else None) or UNKNOWN,
        partner_name=(lead.partner_name if lead else None) or UNKNOWN,
        document_type_name=(doc_type.name if doc_type else None) or UNKNOWN,
        document_category=(doc_type.category.value if doc_type else None) or UNKNOWN,
        original_filename=doc.original_filename,
        file_path=doc.file_path,
        file_size=doc.file_size,
        mime_type=doc.mime_type,
        ai_validation_status=doc.ai_validation_status,
        ai_detected_type=doc.ai_detected_type,
        ai_confidence_score=doc.ai_confidence_score,
        ai_validation_notes=doc.ai_validation_notes,
        uploaded_at=doc.uploaded_at,
    )


async def list_pending(session: AsyncSession, limit: int = 200) -> list[PendingDocumentResponse]:
    """Pending records with lead and type context, newest upload first."""
    stmt = (
        select(LeadDocument, Lead, DocumentType)
        .outerjoin(Lead, LeadDocument.lead_id == Lead.id)
        .outerjoin(DocumentType, LeadDocument.document_type_id == DocumentType.id)
        .where(LeadDocument.verification_status == VerificationStatus.PENDING)
        .order_by(LeadDocument.uploaded_at.desc(), LeadDocument.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return [_to_pending(doc, lead, doc_type) for doc, lead, doc_type in result.all()]


async def _get_document(session: AsyncSession, document_id: int) -> LeadDocument:
    result = await session.execute(select(LeadDocument).where(LeadDocument.id == document_id))
    doc = result.scalar_one_or_none()
    if doc is None:
        raise DocumentNotFound(document_id)
    return doc


async def _conditional_update(
    session: AsyncSession,
    document_id: int,
    from_status: VerificationStatus,
    values: dict,
) -> LeadDocument | None:
    """UPDATE ... WHERE id = :id AND verification_status = :from RETURNING *."""
    stmt = (
        update(LeadDocument)
        .where(
            LeadDocument.id == document_id,
            LeadDocument.verification_status == from_status,
        )
        .values(**values)
        .returning(LeadDocument)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _record(
    session: AsyncSession,
    notifier: ChangeNotifier,
    reviewer: UserContext,
    doc: LeadDocument,
    *,
    event_type: str,
    old_status: VerificationStatus,
    notes: str | None,
) -> None:
    await write_audit_event(
        session,
        event_type=event_type,
        user_id=reviewer.user_id,
        user_role=reviewer.role.value,
        lead_id=doc.lead_id,
        document_id=doc.id,
        event_data={
            "old_status": old_status.value,
            "new_status": doc.verification_status.value,
            "notes": notes,
        },
    )
    await session.commit()
    notifier.publish(LEAD_DOCUMENTS, "update", doc.id)


async def verify_document(
    session: AsyncSession,
    notifier: ChangeNotifier,
    reviewer: UserContext,
    document_id: int,
    notes: str | None = None,
) -> LeadDocument:
    """Mark a pending record verified. Verifying an already verified record is a no-op."""
    cleaned = (notes or "").strip() or None
    values = {
        "verification_status": VerificationStatus.VERIFIED,
        "verified_at": datetime.now(UTC),
        "verified_by": reviewer.user_id,
    }
    if cleaned:
        values["admin_notes"] = cleaned

    doc = await _conditional_update(session, document_id, VerificationStatus.PENDING, values)
    if doc is None:
        current = await _get_document(session, document_id)
        if current.verification_status == VerificationStatus.VERIFIED:
            logger.info("Document %s already verified; nothing to do", document_id)
            return current
        raise InvalidVerificationTransition(
            f"Document {document_id} is {current.verification_status.value} and cannot be verified"
        )

    await _record(
        session,
        notifier,
        reviewer,
        doc,
        event_type="document_verify",
        old_status=VerificationStatus.PENDING,
        notes=cleaned,
    )
    logger.info("Document %s verified by %s", document_id, reviewer.user_id)
    return doc


async def reject_document(
    session: AsyncSession,
    notifier: ChangeNotifier,
    reviewer: UserContext,
    document_id: int,
    notes: str | None,
) -> LeadDocument:
    """Reject a record with a reason. Re-rejecting replaces the reason."""
    cleaned = (notes or "").strip()
    if not cleaned:
        raise RejectionReasonRequired("A rejection reason is required")

    values = {
        "verification_status": VerificationStatus.REJECTED,
        "verified_at": datetime.now(UTC),
        "verified_by": reviewer.user_id,
        "admin_notes": cleaned,
    }

    old_status = VerificationStatus.PENDING
    doc = await _conditional_update(session, document_id, VerificationStatus.PENDING, values)
    if doc is None:
        current = await _get_document(session, document_id)
        if current.verification_status != VerificationStatus.REJECTED:
            raise InvalidVerificationTransition(
                f"Document {document_id} is {current.verification_status.value} "
                "and cannot be rejected"
            )
        old_status = VerificationStatus.REJECTED
        doc = await _conditional_update(session, document_id, VerificationStatus.REJECTED, values)
        if doc is None:
            raise InvalidVerificationTransition(
                f"Document {document_id} changed while it was being rejected"
            )

    await _record(
        session,
        notifier,
        reviewer,
        doc,
        event_type="document_reject",
        old_status=old_status,
        notes=cleaned,
    )
    logger.info("Document %s rejected by %s", document_id, reviewer.user_id)
    return doc


async def get_download_url(session: AsyncSession, document_id: int, expires_in: int) -> str:
    """Signed, time-limited URL for a reviewer to open the stored file."""
    doc = await _get_document(session, document_id)
    return await get_storage_service().get_download_url(doc.file_path, expires_in=expires_in)
