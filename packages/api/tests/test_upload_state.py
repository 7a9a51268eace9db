# This project was developed with assistance from AI tools.
"""Tests for upload lifecycle transitions."""

import pytest

from intake_api.schemas.classification import ClassificationResult
from intake_api.schemas.upload import FailureKind, UploadState
from intake_api.services import upload_state
from intake_api.services.classification_policy import decide, skipped_verdict
from intake_api.services.upload_state import InvalidUploadTransition
from intake_db.enums import QualityAssessment


def _entry():
    return upload_state.new_entry(
        correlation_id="c-1",
        lead_id=7,
        document_type_id=1,
        filename="pan.jpg",
        size=1024,
        content_type="image/jpeg",
    )


def _rejected():
    result = ClassificationResult(
        detected_type="aadhaar_card",
        is_document=True,
        confidence=88,
        quality=QualityAssessment.GOOD,
    )
    return upload_state.classified(_entry(), decide(result, "PAN Card"), suggested_document_type_id=2)


def test_new_entry_starts_validating():
    entry = _entry()
    assert entry.state == UploadState.VALIDATING
    assert entry.skip_validation is False
    assert entry.created_at == entry.updated_at


def test_constraint_failure_is_not_retryable():
    entry = upload_state.constraint_failed(_entry(), "too big")
    assert entry.state == UploadState.ERROR
    assert entry.failure_kind == FailureKind.FILE_CONSTRAINT
    with pytest.raises(InvalidUploadTransition):
        upload_state.retry(entry)


def test_rejected_verdict_stops_pipeline():
    entry = _rejected()
    assert entry.state == UploadState.REJECTED
    assert entry.error.startswith("Rejected - wrong document type")
    assert entry.suggested_document_type_id == 2
    with pytest.raises(InvalidUploadTransition):
        upload_state.begin_upload(entry)


def test_non_rejected_verdict_keeps_validating():
    entry = upload_state.classified(_entry(), skipped_verdict(), warning="AI service quota exceeded.")
    assert entry.state == UploadState.VALIDATING
    assert entry.classifier_warning == "AI service quota exceeded."


def test_override_only_after_rejection():
    with pytest.raises(InvalidUploadTransition):
        upload_state.override(_entry())

    overridden = upload_state.override(_rejected())
    assert overridden.state == UploadState.VALIDATING
    assert overridden.skip_validation is True
    assert overridden.error is None
    assert overridden.suggested_document_type_id is None
    assert overridden.verdict is not None


def test_override_not_allowed_after_completion():
    entry = upload_state.begin_upload(upload_state.classified(_entry(), skipped_verdict()))
    entry = upload_state.upload_completed(entry, document_id=100, file_path="7/1/x.jpg")
    assert entry.state == UploadState.COMPLETED
    with pytest.raises(InvalidUploadTransition):
        upload_state.override(entry)


@pytest.mark.parametrize("kind", [FailureKind.STORAGE, FailureKind.PERSISTENCE])
def test_retry_after_transient_failure(kind):
    entry = upload_state.begin_upload(upload_state.classified(_entry(), skipped_verdict()))
    failed = upload_state.upload_failed(entry, "Network error", kind)
    assert failed.state == UploadState.ERROR

    retried = upload_state.retry(failed)
    assert retried.state == UploadState.VALIDATING
    assert retried.error is None
    assert retried.failure_kind is None


def test_snapshots_are_not_mutated():
    entry = _entry()
    upload_state.begin_upload(entry)
    assert entry.state == UploadState.VALIDATING
