# This project was developed with assistance from AI tools.
"""Classifier output and the trust verdict derived from it."""

import enum

from intake_db.enums import AIValidationStatus, QualityAssessment, RedFlag
from pydantic import BaseModel, ConfigDict, Field


class VerdictReason(str, enum.Enum):
    """Which decision rule produced a verdict."""

    SKIPPED = "skipped"
    OVERRIDE = "override"
    NOT_A_DOCUMENT = "not_a_document"
    UNRECOGNIZED = "unrecognized"
    WRONG_TYPE = "wrong_type"
    LOW_CONFIDENCE = "low_confidence"
    POOR_QUALITY = "poor_quality"
    FLAGGED = "flagged"
    NEEDS_REVIEW = "needs_review"
    PASSED = "passed"


class ClassificationResult(BaseModel):
    """Structured answer from the vision classifier."""

    model_config = ConfigDict(frozen=True)

    detected_type: str
    is_document: bool
    confidence: int = Field(ge=0, le=100)
    quality: QualityAssessment
    red_flags: list[RedFlag] = Field(default_factory=list)
    reasoning: str | None = None


class ClassificationVerdict(BaseModel):
    """Outcome of the decision rules, plus the classifier fields worth persisting."""

    model_config = ConfigDict(frozen=True)

    status: AIValidationStatus
    reason: VerdictReason
    notes: str
    detected_type: str | None = None
    confidence: int | None = None
    quality: QualityAssessment | None = None
    red_flags: list[RedFlag] = Field(default_factory=list)
