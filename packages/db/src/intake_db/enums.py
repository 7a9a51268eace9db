# This project was developed with assistance from AI tools.
"""
Domain enums for document intake and verification.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class DocumentCategory(str, enum.Enum):
    STUDENT = "student"
    FINANCIAL_CO_APPLICANT = "financial_co_applicant"
    NON_FINANCIAL_CO_APPLICANT = "non_financial_co_applicant"
    COLLATERAL = "collateral"
    NRI_FINANCIAL = "nri_financial"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    DocumentCategory.STUDENT: "Student KYC",
    DocumentCategory.FINANCIAL_CO_APPLICANT: "Co-Applicant Financial",
    DocumentCategory.NON_FINANCIAL_CO_APPLICANT: "Non-Financial Co-Applicant",
    DocumentCategory.COLLATERAL: "Property/Collateral",
    DocumentCategory.NRI_FINANCIAL: "NRI Documents",
}


class UploadStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    FAILED = "failed"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    VERIFIED = "verified"
    REJECTED = "rejected"
    RESUBMISSION_REQUIRED = "resubmission_required"

    @classmethod
    def reviewed(cls) -> frozenset["VerificationStatus"]:
        """Statuses that carry a reviewer decision."""
        return frozenset({cls.VERIFIED, cls.REJECTED})


class AIValidationStatus(str, enum.Enum):
    VALIDATED = "validated"
    REJECTED = "rejected"
    MANUAL_REVIEW = "manual_review"


class QualityAssessment(str, enum.Enum):
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    UNREADABLE = "unreadable"


class RedFlag(str, enum.Enum):
    NOT_A_DOCUMENT = "not_a_document"
    SELFIE = "selfie"
    SCREENSHOT = "screenshot"
    EDITED = "edited"
    BLURRY = "blurry"
    PARTIAL = "partial"
    LOW_QUALITY = "low_quality"
    WRONG_TYPE = "wrong_type"
    RANDOM_PHOTO = "random_photo"


class ActivityType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    DOCUMENT_UPLOAD = "document_upload"
    DOCUMENT_VERIFY = "document_verify"
    DOCUMENT_REJECT = "document_reject"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PARTNER = "partner"
    STUDENT = "student"
    SYSTEM = "system"

    @classmethod
    def from_raw(cls, value: str | None) -> "UserRole":
        """Map a stored role string onto a display role (unknown -> system)."""
        if value == "super_admin":
            return cls.ADMIN
        try:
            return cls(value)
        except ValueError:
            return cls.SYSTEM
