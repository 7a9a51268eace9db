# This project was developed with assistance from AI tools.
"""Upload orchestration: constraints -> classification -> decision -> storage -> record.

Each file is one sequential coroutine with its own ``UploadEntry``. The
registry of entries is per-process bookkeeping for the uploader's UI; the
durable outcome is the ``LeadDocument`` row. Results that arrive for an
entry that was removed mid-flight are dropped (and any blob already
stored for it is deleted). Finished entries, and the file bytes kept for
override or retry, are pruned once they age past the retention window or
the registry grows past its cap.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from intake_db import DocumentType, Lead, LeadDocument
from intake_db.enums import UploadStatus, VerificationStatus
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..schemas.auth import UserContext
from ..schemas.classification import ClassificationVerdict, VerdictReason
from ..schemas.upload import FailureKind, UploadEntry, UploadState
from . import upload_state
from .audit import write_audit_event
from .changes import LEAD_DOCUMENTS, ChangeNotifier
from .classification_policy import decide, override_verdict, skipped_verdict
from .classifier import ClassifierError, get_classifier
from .file_constraints import validate_file
from .storage import StorageError, get_storage_service
from .type_aliases import suggest_document_type

logger = logging.getLogger(__name__)

PERSISTENCE_ERROR_MESSAGE = "Your file could not be saved. Please try again."
UNSUPPORTED_MEDIA_DETAIL = "automated check not available for this file type"


class UploadNotFound(Exception):
    """No upload entry with that correlation id."""


class LeadNotFound(Exception):
    """The owning lead does not exist."""


class DocumentTypeNotFound(Exception):
    """The requested document type does not exist."""


@dataclass
class _Candidate:
    """File bytes and uploader retained while the entry may still be overridden or retried."""

    data: bytes
    uploader: UserContext


def compose_ai_notes(verdict: ClassificationVerdict) -> str:
    """Notes persisted on the record: verdict notes plus any red flags."""
    notes = verdict.notes
    if verdict.red_flags:
        flags = ", ".join(flag.value for flag in verdict.red_flags)
        notes = f"{notes} | Red flags: {flags}"
    return notes


class UploadOrchestrator:
    """Drives upload entries through their lifecycle."""

    def __init__(
        self,
        classifier_timeout: float = 30.0,
        retention_seconds: float = 3600.0,
        max_entries: int = 500,
    ):
        self._classifier_timeout = classifier_timeout
        self._retention = timedelta(seconds=retention_seconds)
        self._max_entries = max_entries
        self._entries: dict[str, UploadEntry] = {}
        self._candidates: dict[str, _Candidate] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get(self, correlation_id: str) -> UploadEntry:
        entry = self._entries.get(correlation_id)
        if entry is None:
            raise UploadNotFound(correlation_id)
        return entry

    def list_entries(self, lead_id: int | None = None) -> list[UploadEntry]:
        entries = self._entries.values()
        if lead_id is not None:
            entries = [e for e in entries if e.lead_id == lead_id]
        return sorted(entries, key=lambda e: e.created_at)

    def remove(self, correlation_id: str) -> None:
        """Drop an entry in any state. In-flight work for it is discarded on arrival."""
        if self._entries.pop(correlation_id, None) is None:
            raise UploadNotFound(correlation_id)
        self._candidates.pop(correlation_id, None)
        logger.info("Upload %s removed", correlation_id)

    def _commit(self, entry: UploadEntry) -> bool:
        """Swap in a new snapshot unless the entry was removed meanwhile."""
        if entry.correlation_id not in self._entries:
            logger.info(
                "Discarding %s result for removed upload %s",
                entry.state.value,
                entry.correlation_id,
            )
            return False
        self._entries[entry.correlation_id] = entry
        if entry.state == UploadState.COMPLETED or entry.failure_kind == FailureKind.FILE_CONSTRAINT:
            self._candidates.pop(entry.correlation_id, None)
        return True

    def prune(self, now: datetime | None = None) -> int:
        """Drop finished entries past the retention window, then the oldest above the cap.

        In-flight entries are never dropped. Returns the number of entries removed.
        """
        now = now or datetime.now(UTC)
        terminal = UploadState.terminal_states()
        finished = sorted(
            (e for e in self._entries.values() if e.state in terminal),
            key=lambda e: e.updated_at,
        )
        expired = [e for e in finished if now - e.updated_at >= self._retention]
        overflow = len(self._entries) - len(expired) - self._max_entries
        if overflow > 0:
            expired.extend(finished[len(expired) : len(expired) + overflow])

        for entry in expired:
            self._entries.pop(entry.correlation_id, None)
            self._candidates.pop(entry.correlation_id, None)
        if expired:
            logger.debug("Pruned %d finished upload entries", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(
        self,
        session: AsyncSession,
        notifier: ChangeNotifier,
        user: UserContext,
        *,
        lead_id: int,
        document_type_id: int,
        filename: str,
        content_type: str,
        file_data: bytes,
    ) -> UploadEntry:
        """Register a new file and run it through the pipeline."""
        if await session.get(Lead, lead_id) is None:
            raise LeadNotFound(lead_id)
        doc_type = await session.get(DocumentType, document_type_id)
        if doc_type is None:
            raise DocumentTypeNotFound(document_type_id)

        self.prune()
        entry = upload_state.new_entry(
            correlation_id=uuid.uuid4().hex,
            lead_id=lead_id,
            document_type_id=document_type_id,
            filename=filename,
            size=len(file_data),
            content_type=content_type,
        )
        self._entries[entry.correlation_id] = entry
        candidate = _Candidate(data=file_data, uploader=user)
        self._candidates[entry.correlation_id] = candidate
        logger.info(
            "Upload %s started: lead=%s type=%s file=%s (%d bytes)",
            entry.correlation_id,
            lead_id,
            doc_type.name,
            filename,
            entry.size,
        )
        return await self._run(session, notifier, entry, doc_type, candidate)

    async def override(
        self,
        session: AsyncSession,
        notifier: ChangeNotifier,
        user: UserContext,
        correlation_id: str,
    ) -> UploadEntry:
        """Upload a rejected file anyway, skipping only classification."""
        entry = upload_state.override(self.get(correlation_id))
        return await self._resume(session, notifier, user, entry)

    async def retry(
        self,
        session: AsyncSession,
        notifier: ChangeNotifier,
        user: UserContext,
        correlation_id: str,
    ) -> UploadEntry:
        """Re-run a failed upload from the start."""
        entry = upload_state.retry(self.get(correlation_id))
        return await self._resume(session, notifier, user, entry)

    async def _resume(
        self,
        session: AsyncSession,
        notifier: ChangeNotifier,
        user: UserContext,
        entry: UploadEntry,
    ) -> UploadEntry:
        candidate = self._candidates.get(entry.correlation_id)
        if candidate is None:
            raise upload_state.InvalidUploadTransition("The original file is no longer available")
        candidate.uploader = user
        self._commit(entry)

        doc_type = await session.get(DocumentType, entry.document_type_id)
        if doc_type is None:
            raise DocumentTypeNotFound(entry.document_type_id)
        return await self._run(session, notifier, entry, doc_type, candidate)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(
        self,
        session: AsyncSession,
        notifier: ChangeNotifier,
        entry: UploadEntry,
        doc_type: DocumentType,
        candidate: _Candidate,
    ) -> UploadEntry:
        cid = entry.correlation_id

        message = validate_file(entry.filename, entry.size, entry.content_type, doc_type)
        if message:
            entry = upload_state.constraint_failed(entry, message)
            self._commit(entry)
            logger.info("Upload %s failed local checks: %s", cid, message)
            return entry

        verdict, warning = await self._classify(entry, doc_type, candidate)

        suggestion_id = None
        if verdict.reason == VerdictReason.WRONG_TYPE:
            suggestion_id = await self._suggest_document_type(session, verdict.detected_type)

        entry = upload_state.classified(
            entry, verdict, warning=warning, suggested_document_type_id=suggestion_id
        )
        if not self._commit(entry) or entry.state == UploadState.REJECTED:
            return entry

        entry = upload_state.begin_upload(entry)
        if not self._commit(entry):
            return entry

        storage = get_storage_service()
        object_key = storage.build_object_key(entry.lead_id, entry.document_type_id, entry.filename)
        try:
            await storage.upload_file(candidate.data, object_key, entry.content_type)
        except StorageError as exc:
            entry = upload_state.upload_failed(entry, exc.user_message, FailureKind.STORAGE)
            self._commit(entry)
            return entry

        if cid not in self._entries:
            await self._delete_blob(object_key)
            return entry

        try:
            record = await self._persist(session, entry, doc_type, object_key, candidate)
        except SQLAlchemyError:
            logger.exception("Upload %s: record insert failed, removing blob %s", cid, object_key)
            await session.rollback()
            await self._delete_blob(object_key)
            entry = upload_state.upload_failed(
                entry, PERSISTENCE_ERROR_MESSAGE, FailureKind.PERSISTENCE
            )
            self._commit(entry)
            return entry

        notifier.publish(LEAD_DOCUMENTS, "insert", record.id)
        entry = upload_state.upload_completed(entry, record.id, object_key)
        self._commit(entry)
        logger.info(
            "Upload %s completed: document=%s ai_status=%s",
            cid,
            record.id,
            entry.verdict.status.value if entry.verdict else None,
        )
        return entry

    async def _classify(
        self,
        entry: UploadEntry,
        doc_type: DocumentType,
        candidate: _Candidate,
    ) -> tuple[ClassificationVerdict, str | None]:
        """Return (verdict, user-facing classifier warning)."""
        if entry.skip_validation:
            if entry.verdict is not None and entry.verdict.reason == VerdictReason.OVERRIDE:
                return entry.verdict, None
            return override_verdict(entry.verdict.notes if entry.verdict else None), None

        classifier = get_classifier()
        if not classifier.supports(entry.content_type):
            return skipped_verdict(UNSUPPORTED_MEDIA_DETAIL), None

        try:
            result = await asyncio.wait_for(
                classifier.classify(candidate.data, entry.content_type, doc_type.name),
                timeout=self._classifier_timeout,
            )
        except ClassifierError as exc:
            logger.warning("Upload %s: classifier failed (%s)", entry.correlation_id, exc)
            return decide(None, doc_type.name), exc.user_message
        except asyncio.TimeoutError:
            logger.warning(
                "Upload %s: classifier exceeded %.0fs",
                entry.correlation_id,
                self._classifier_timeout,
            )
            return decide(None, doc_type.name), ClassifierError.user_message

        return decide(result, doc_type.name), None

    async def _suggest_document_type(self, session: AsyncSession, detected: str | None) -> int | None:
        result = await session.execute(select(DocumentType).order_by(DocumentType.id))
        match = suggest_document_type(detected, list(result.scalars().all()))
        return match.id if match is not None else None

    async def _persist(
        self,
        session: AsyncSession,
        entry: UploadEntry,
        doc_type: DocumentType,
        object_key: str,
        candidate: _Candidate,
    ) -> LeadDocument:
        """Insert the record (always pending human review) and its audit event."""
        version_result = await session.execute(
            select(func.max(LeadDocument.version)).where(
                LeadDocument.lead_id == entry.lead_id,
                LeadDocument.document_type_id == entry.document_type_id,
            )
        )
        version = (version_result.scalar() or 0) + 1

        verdict = entry.verdict or skipped_verdict()
        uploader = candidate.uploader
        doc = LeadDocument(
            lead_id=entry.lead_id,
            document_type_id=entry.document_type_id,
            original_filename=entry.filename,
            stored_filename=object_key.rsplit("/", 1)[-1],
            file_path=object_key,
            file_size=entry.size,
            mime_type=entry.content_type,
            upload_status=UploadStatus.UPLOADED,
            verification_status=VerificationStatus.PENDING,
            ai_validation_status=verdict.status,
            ai_detected_type=verdict.detected_type,
            ai_confidence_score=verdict.confidence,
            ai_quality_assessment=verdict.quality,
            ai_validation_notes=compose_ai_notes(verdict),
            ai_validated_at=datetime.now(UTC) if verdict.confidence is not None else None,
            uploaded_by=uploader.user_id,
            uploaded_by_role=uploader.role.value,
            version=version,
        )
        session.add(doc)
        await session.flush()

        await write_audit_event(
            session,
            event_type="document_upload",
            user_id=uploader.user_id,
            user_role=uploader.role.value,
            lead_id=entry.lead_id,
            document_id=doc.id,
            event_data={
                "document_type": doc_type.name,
                "filename": entry.filename,
                "version": version,
                "ai_validation_status": verdict.status.value,
                "ai_reason": verdict.reason.value,
                "override": entry.skip_validation,
            },
        )
        await session.commit()
        return doc

    async def _delete_blob(self, object_key: str) -> None:
        try:
            await get_storage_service().delete_file(object_key)
        except Exception:
            logger.exception("Could not delete orphaned blob %s", object_key)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_orchestrator: UploadOrchestrator | None = None


def init_upload_orchestrator(cfg: Settings) -> UploadOrchestrator:
    """Initialise the singleton (called once from app lifespan)."""
    global _orchestrator  # noqa: PLW0603
    _orchestrator = UploadOrchestrator(
        classifier_timeout=cfg.CLASSIFIER_TIMEOUT_SECONDS,
        retention_seconds=cfg.UPLOAD_RETENTION_SECONDS,
        max_entries=cfg.UPLOAD_MAX_ENTRIES,
    )
    logger.info("UploadOrchestrator initialised")
    return _orchestrator


def get_upload_orchestrator() -> UploadOrchestrator:
    """Return the initialised UploadOrchestrator singleton."""
    if _orchestrator is None:
        raise RuntimeError(
            "UploadOrchestrator not initialised -- call init_upload_orchestrator() first"
        )
    return _orchestrator
