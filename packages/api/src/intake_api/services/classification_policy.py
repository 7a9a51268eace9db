# This project was developed with assistance from AI tools.
"""Trust decision over a classifier result.

Rules are evaluated in a fixed priority order and the first that fires
wins. The order matters: a document that is both the wrong type and low
confidence must be reported as the wrong type.
"""

from intake_db.enums import AIValidationStatus, QualityAssessment, RedFlag

from ..schemas.classification import ClassificationResult, ClassificationVerdict, VerdictReason
from .type_aliases import normalize_label, types_match

REJECT_CONFIDENCE_BELOW = 40
REVIEW_CONFIDENCE_BELOW = 60

NOT_A_DOCUMENT_FLAGS = frozenset({RedFlag.NOT_A_DOCUMENT, RedFlag.RANDOM_PHOTO, RedFlag.SELFIE})
REVIEW_FLAGS = frozenset({RedFlag.EDITED, RedFlag.SCREENSHOT, RedFlag.PARTIAL})
POOR_QUALITY = frozenset({QualityAssessment.POOR, QualityAssessment.UNREADABLE})

SKIPPED_NOTE = "Automated check skipped - marked for manual review"


def _flag_list(flags) -> str:
    return ", ".join(sorted(flag.value for flag in flags))


def _verdict(
    status: AIValidationStatus,
    reason: VerdictReason,
    notes: str,
    result: ClassificationResult,
) -> ClassificationVerdict:
    return ClassificationVerdict(
        status=status,
        reason=reason,
        notes=notes,
        detected_type=result.detected_type,
        confidence=result.confidence,
        quality=result.quality,
        red_flags=list(result.red_flags),
    )


def skipped_verdict(detail: str | None = None) -> ClassificationVerdict:
    """Verdict for an upload the classifier never judged."""
    notes = f"{SKIPPED_NOTE} ({detail})" if detail else SKIPPED_NOTE
    return ClassificationVerdict(
        status=AIValidationStatus.MANUAL_REVIEW,
        reason=VerdictReason.SKIPPED,
        notes=notes,
    )


def override_verdict(prior_notes: str | None) -> ClassificationVerdict:
    """Verdict for a file the uploader chose to submit despite an automated rejection."""
    notes = "Uploaded with override after automated rejection"
    if prior_notes:
        notes = f"{notes}: {prior_notes}"
    return ClassificationVerdict(
        status=AIValidationStatus.MANUAL_REVIEW,
        reason=VerdictReason.OVERRIDE,
        notes=notes,
    )


def decide(result: ClassificationResult | None, expected_type: str) -> ClassificationVerdict:
    """Map a classifier result (or its absence) to validated / rejected / manual_review."""
    if result is None:
        return skipped_verdict()

    flags = set(result.red_flags)

    if not result.is_document or flags & NOT_A_DOCUMENT_FLAGS:
        blocking = flags & NOT_A_DOCUMENT_FLAGS
        suffix = f" ({_flag_list(blocking)})" if blocking else ""
        return _verdict(
            AIValidationStatus.REJECTED,
            VerdictReason.NOT_A_DOCUMENT,
            f"Rejected - not a valid document{suffix}",
            result,
        )

    if normalize_label(result.detected_type) in ("", "unknown"):
        return _verdict(
            AIValidationStatus.REJECTED,
            VerdictReason.UNRECOGNIZED,
            "Rejected - unrecognized document",
            result,
        )

    if not types_match(result.detected_type, expected_type):
        return _verdict(
            AIValidationStatus.REJECTED,
            VerdictReason.WRONG_TYPE,
            f"Rejected - wrong document type: expected {expected_type}, "
            f"got {result.detected_type}",
            result,
        )

    if result.confidence < REJECT_CONFIDENCE_BELOW:
        return _verdict(
            AIValidationStatus.REJECTED,
            VerdictReason.LOW_CONFIDENCE,
            f"Rejected - low confidence ({result.confidence}%)",
            result,
        )

    if result.quality in POOR_QUALITY:
        return _verdict(
            AIValidationStatus.MANUAL_REVIEW,
            VerdictReason.POOR_QUALITY,
            f"Manual review - quality issue: {result.quality.value}",
            result,
        )

    review_flags = flags & REVIEW_FLAGS
    if review_flags:
        return _verdict(
            AIValidationStatus.MANUAL_REVIEW,
            VerdictReason.FLAGGED,
            f"Manual review - flagged: {_flag_list(review_flags)}",
            result,
        )

    if result.confidence < REVIEW_CONFIDENCE_BELOW:
        return _verdict(
            AIValidationStatus.MANUAL_REVIEW,
            VerdictReason.NEEDS_REVIEW,
            f"Manual review - needs review, confidence {result.confidence}%",
            result,
        )

    return _verdict(
        AIValidationStatus.VALIDATED,
        VerdictReason.PASSED,
        result.reasoning or "OK",
        result,
    )
