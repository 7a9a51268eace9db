# This project was developed with assistance from AI tools.
"""Pure transitions for the per-file upload lifecycle.

    validating --constraint_failed--> error
    validating --classified(rejected)--> rejected --override--> validating
    validating --begin_upload--> uploading --upload_completed--> completed
                                           --upload_failed--> error --retry--> validating

Each function takes a snapshot and returns a new one; none of them
perform I/O. Invalid transitions raise ``InvalidUploadTransition``.
"""

from datetime import UTC, datetime

from intake_db.enums import AIValidationStatus

from ..schemas.classification import ClassificationVerdict
from ..schemas.upload import FailureKind, UploadEntry, UploadState

RETRYABLE_FAILURES = frozenset({FailureKind.STORAGE, FailureKind.PERSISTENCE})


class InvalidUploadTransition(Exception):
    """Requested action is not allowed from the entry's current state."""


def _now() -> datetime:
    return datetime.now(UTC)


def _require(entry: UploadEntry, action: str, *states: UploadState) -> None:
    if entry.state not in states:
        raise InvalidUploadTransition(
            f"Cannot {action} an upload that is {entry.state.value}"
        )


def _update(entry: UploadEntry, **changes) -> UploadEntry:
    return entry.model_copy(update={**changes, "updated_at": _now()})


def new_entry(
    *,
    correlation_id: str,
    lead_id: int,
    document_type_id: int,
    filename: str,
    size: int,
    content_type: str,
) -> UploadEntry:
    now = _now()
    return UploadEntry(
        correlation_id=correlation_id,
        lead_id=lead_id,
        document_type_id=document_type_id,
        filename=filename,
        size=size,
        content_type=content_type,
        state=UploadState.VALIDATING,
        created_at=now,
        updated_at=now,
    )


def constraint_failed(entry: UploadEntry, message: str) -> UploadEntry:
    _require(entry, "fail validation of", UploadState.VALIDATING)
    return _update(
        entry,
        state=UploadState.ERROR,
        error=message,
        failure_kind=FailureKind.FILE_CONSTRAINT,
    )


def classified(
    entry: UploadEntry,
    verdict: ClassificationVerdict,
    *,
    warning: str | None = None,
    suggested_document_type_id: int | None = None,
) -> UploadEntry:
    """Record the verdict; a rejected verdict stops the pipeline."""
    _require(entry, "classify", UploadState.VALIDATING)
    if verdict.status == AIValidationStatus.REJECTED:
        return _update(
            entry,
            state=UploadState.REJECTED,
            verdict=verdict,
            classifier_warning=warning,
            error=verdict.notes,
            suggested_document_type_id=suggested_document_type_id,
        )
    return _update(entry, verdict=verdict, classifier_warning=warning)


def begin_upload(entry: UploadEntry) -> UploadEntry:
    _require(entry, "store", UploadState.VALIDATING)
    return _update(entry, state=UploadState.UPLOADING)


def upload_failed(entry: UploadEntry, message: str, kind: FailureKind) -> UploadEntry:
    _require(entry, "fail", UploadState.UPLOADING)
    return _update(entry, state=UploadState.ERROR, error=message, failure_kind=kind)


def upload_completed(entry: UploadEntry, document_id: int, file_path: str) -> UploadEntry:
    _require(entry, "complete", UploadState.UPLOADING)
    return _update(
        entry,
        state=UploadState.COMPLETED,
        document_id=document_id,
        file_path=file_path,
        error=None,
        failure_kind=None,
    )


def override(entry: UploadEntry) -> UploadEntry:
    """Upload anyway: only after an automated rejection. Keeps the prior verdict for the record."""
    _require(entry, "override", UploadState.REJECTED)
    return _update(
        entry,
        state=UploadState.VALIDATING,
        skip_validation=True,
        error=None,
        suggested_document_type_id=None,
    )


def retry(entry: UploadEntry) -> UploadEntry:
    _require(entry, "retry", UploadState.ERROR)
    if entry.failure_kind not in RETRYABLE_FAILURES:
        raise InvalidUploadTransition("Choose a different file; this one cannot be retried")
    return _update(entry, state=UploadState.VALIDATING, error=None, failure_kind=None)
