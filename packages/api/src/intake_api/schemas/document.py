# This project was developed with assistance from AI tools.
"""Document type and document record request/response schemas."""

from datetime import datetime

from intake_db.enums import (
    AIValidationStatus,
    DocumentCategory,
    QualityAssessment,
    UploadStatus,
    VerificationStatus,
)
from pydantic import BaseModel, ConfigDict, Field


class DocumentTypeResponse(BaseModel):
    """Reference document type with its upload limits."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: DocumentCategory
    required: bool
    accepted_formats: list[str]
    max_file_size_pdf: int
    max_file_size_image: int
    description: str | None = None


class DocumentTypeListResponse(BaseModel):
    data: list[DocumentTypeResponse]
    count: int


class DocumentRecordResponse(BaseModel):
    """A stored document with AI metadata and review state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    document_type_id: int
    original_filename: str
    file_path: str
    file_size: int
    mime_type: str | None = None
    upload_status: UploadStatus
    verification_status: VerificationStatus
    ai_validation_status: AIValidationStatus | None = None
    ai_detected_type: str | None = None
    ai_confidence_score: int | None = None
    ai_quality_assessment: QualityAssessment | None = None
    ai_validation_notes: str | None = None
    verified_at: datetime | None = None
    verified_by: str | None = None
    admin_notes: str | None = None
    uploaded_by: str | None = None
    uploaded_at: datetime
    version: int


class PendingDocumentResponse(BaseModel):
    """Verification queue row: document joined with its lead and type."""

    id: int
    lead_id: int
    case_id: str
    student_name: str
    partner_name: str
    document_type_name: str
    document_category: str
    original_filename: str
    file_path: str
    file_size: int
    mime_type: str | None = None
    ai_validation_status: AIValidationStatus | None = None
    ai_detected_type: str | None = None
    ai_confidence_score: int | None = None
    ai_validation_notes: str | None = None
    uploaded_at: datetime


class VerificationQueueResponse(BaseModel):
    data: list[PendingDocumentResponse]
    count: int


class VerifyRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class RejectRequest(BaseModel):
    notes: str = Field(default="", max_length=2000)


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int
