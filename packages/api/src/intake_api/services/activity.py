# This project was developed with assistance from AI tools.
"""Unified activity timeline.

Merges two independent sources, lead status history and document
lifecycle, into one newest-first list. Projection and merging are pure;
``get_activity_feed`` does the reads and tolerates either source (or the
actor directory) failing.
"""

import logging
from collections.abc import Iterable, Sequence

from intake_db import Lead, LeadDocument, LeadStatusHistory
from intake_db.enums import ActivityType, UserRole, VerificationStatus
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.activity import ActivityEvent
from .actors import Actor, actor_label, resolve_actors

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_REVIEW_EVENT_TYPES = {
    VerificationStatus.VERIFIED: ActivityType.DOCUMENT_VERIFY,
    VerificationStatus.REJECTED: ActivityType.DOCUMENT_REJECT,
}


def _lead_fields(lead: Lead | None) -> dict:
    return {
        "case_id": (lead.case_id if lead else None) or UNKNOWN,
        "student_name": (lead.student_name if lead else None) or UNKNOWN,
    }


def _role(stored_role: str | None, actors: dict[str, Actor], actor_id: str | None) -> UserRole:
    if stored_role:
        return UserRole.from_raw(stored_role)
    actor = actors.get(actor_id or "")
    return actor.role if actor else UserRole.SYSTEM


def project_status_change(
    row: LeadStatusHistory,
    lead: Lead | None,
    actors: dict[str, Actor],
) -> ActivityEvent:
    return ActivityEvent(
        id=f"status-{row.id}",
        type=ActivityType.STATUS_CHANGE,
        lead_id=row.lead_id,
        actor=actor_label(actors, row.changed_by),
        actor_role=_role(row.changed_by_role, actors, row.changed_by),
        timestamp=row.created_at,
        old_value=row.old_status or row.old_documents_status,
        new_value=row.new_status or row.new_documents_status,
        change_reason=row.change_reason,
        notes=row.notes,
        **_lead_fields(lead),
    )


def project_document(
    doc: LeadDocument,
    lead: Lead | None,
    actors: dict[str, Actor],
) -> list[ActivityEvent]:
    """An upload event, plus a review event once the record has been decided."""
    events = [
        ActivityEvent(
            id=f"document-{doc.id}-upload",
            type=ActivityType.DOCUMENT_UPLOAD,
            lead_id=doc.lead_id,
            actor=actor_label(actors, doc.uploaded_by),
            actor_role=_role(doc.uploaded_by_role, actors, doc.uploaded_by),
            timestamp=doc.uploaded_at,
            new_value=VerificationStatus.PENDING.value,
            document_name=doc.original_filename,
            **_lead_fields(lead),
        )
    ]

    review_type = _REVIEW_EVENT_TYPES.get(doc.verification_status)
    if review_type is not None and doc.verified_at is not None:
        events.append(
            ActivityEvent(
                id=f"document-{doc.id}-review",
                type=review_type,
                lead_id=doc.lead_id,
                actor=actor_label(actors, doc.verified_by),
                actor_role=_role(None, actors, doc.verified_by),
                timestamp=doc.verified_at,
                old_value=VerificationStatus.PENDING.value,
                new_value=doc.verification_status.value,
                document_name=doc.original_filename,
                notes=doc.admin_notes,
                **_lead_fields(lead),
            )
        )
    return events


def merge_activity(*streams: Iterable[ActivityEvent], limit: int = 30) -> list[ActivityEvent]:
    """Merge event streams newest first (ties by id) and keep the first ``limit``."""
    if limit <= 0:
        return []
    merged = [event for stream in streams for event in stream]
    merged.sort(key=lambda e: (e.timestamp, e.id), reverse=True)
    return merged[:limit]


def build_activity_feed(
    status_rows: Sequence[LeadStatusHistory],
    documents: Sequence[LeadDocument],
    leads: dict[int, Lead],
    actors: dict[str, Actor],
    limit: int = 30,
) -> list[ActivityEvent]:
    status_events = [project_status_change(r, leads.get(r.lead_id), actors) for r in status_rows]
    document_events = [
        event for doc in documents for event in project_document(doc, leads.get(doc.lead_id), actors)
    ]
    return merge_activity(status_events, document_events, limit=limit)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def _read_source(session: AsyncSession, stmt, name: str) -> list:
    # Savepoint so a failed source leaves rows already loaded from the other one usable.
    try:
        async with session.begin_nested():
            result = await session.execute(stmt)
            return list(result.scalars().all())
    except SQLAlchemyError:
        logger.warning("Activity source %s unavailable; continuing without it", name, exc_info=True)
        return []


async def get_activity_feed(
    session: AsyncSession,
    limit: int = 30,
    source_limit: int = 20,
    actor_timeout: float = 2.0,
) -> list[ActivityEvent]:
    """Read both sources, label actors, and merge into one feed."""
    status_rows = await _read_source(
        session,
        select(LeadStatusHistory).order_by(LeadStatusHistory.created_at.desc()).limit(source_limit),
        "lead_status_history",
    )
    documents = await _read_source(
        session,
        select(LeadDocument)
        .order_by(func.coalesce(LeadDocument.verified_at, LeadDocument.uploaded_at).desc())
        .limit(source_limit),
        "lead_documents",
    )

    lead_ids = {row.lead_id for row in status_rows} | {doc.lead_id for doc in documents}
    leads: dict[int, Lead] = {}
    if lead_ids:
        rows = await _read_source(session, select(Lead).where(Lead.id.in_(lead_ids)), "leads")
        leads = {lead.id: lead for lead in rows}

    actor_ids = [row.changed_by for row in status_rows]
    for doc in documents:
        actor_ids.extend([doc.uploaded_by, doc.verified_by])
    actors = await resolve_actors(session, actor_ids, timeout=actor_timeout)

    return build_activity_feed(status_rows, documents, leads, actors, limit=limit)
