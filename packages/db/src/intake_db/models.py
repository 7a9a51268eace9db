# This project was developed with assistance from AI tools.
"""
Loan intake -- document pipeline models

Reference document types, the owning lead (case), uploaded document
records with AI classification metadata, status history, actor
directory, and the audit trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    AIValidationStatus,
    DocumentCategory,
    QualityAssessment,
    UploadStatus,
    VerificationStatus,
)


class DocumentType(Base):
    """Reference taxonomy entry: what may be uploaded and its limits."""

    __tablename__ = "document_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), unique=True, nullable=False)
    category = Column(
        Enum(DocumentCategory, name="document_category", native_enum=False),
        nullable=False,
        index=True,
    )
    required = Column(Boolean, nullable=False, default=False)
    accepted_formats = Column(JSON, nullable=False)
    max_file_size_pdf = Column(Integer, nullable=False)
    max_file_size_image = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<DocumentType(id={self.id}, name='{self.name}')>"


class Lead(Base):
    """Loan case that owns uploaded documents. Maintained outside the pipeline."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(String(50), unique=True, nullable=False)
    student_name = Column(String(200), nullable=True)
    partner_name = Column(String(200), nullable=True)
    status = Column(String(50), nullable=False, default="new")
    documents_status = Column(String(50), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship("LeadDocument", back_populates="lead")

    def __repr__(self):
        return f"<Lead(id={self.id}, case_id='{self.case_id}')>"


class LeadDocument(Base):
    """One stored upload and its AI + human review state."""

    __tablename__ = "lead_documents"
    __table_args__ = (
        Index("ix_lead_documents_status_uploaded", "verification_status", "uploaded_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    document_type_id = Column(Integer, ForeignKey("document_types.id"), nullable=False)
    original_filename = Column(String(500), nullable=False)
    stored_filename = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(255), nullable=True)
    upload_status = Column(
        Enum(UploadStatus, name="upload_status", native_enum=False),
        nullable=False,
        default=UploadStatus.UPLOADED,
    )
    verification_status = Column(
        Enum(VerificationStatus, name="verification_status", native_enum=False),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    ai_validation_status = Column(
        Enum(AIValidationStatus, name="ai_validation_status", native_enum=False),
        nullable=True,
    )
    ai_detected_type = Column(String(100), nullable=True)
    ai_confidence_score = Column(Integer, nullable=True)
    ai_quality_assessment = Column(
        Enum(QualityAssessment, name="quality_assessment", native_enum=False),
        nullable=True,
    )
    ai_validation_notes = Column(Text, nullable=True)
    ai_validated_at = Column(DateTime(timezone=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(String(255), nullable=True)
    admin_notes = Column(Text, nullable=True)
    uploaded_by = Column(String(255), nullable=True)
    uploaded_by_role = Column(String(50), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False, default=1)

    lead = relationship("Lead", back_populates="documents")
    document_type = relationship("DocumentType")

    def __repr__(self):
        return (
            f"<LeadDocument(id={self.id}, lead_id={self.lead_id}, "
            f"status='{self.verification_status}')>"
        )


class LeadStatusHistory(Base):
    """Append-only log of lead status transitions."""

    __tablename__ = "lead_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)
    old_documents_status = Column(String(50), nullable=True)
    new_documents_status = Column(String(50), nullable=True)
    change_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(255), nullable=True)
    changed_by_role = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<LeadStatusHistory(id={self.id}, lead_id={self.lead_id})>"


class AppUser(Base):
    """Actor directory entry, used only to label activity."""

    __tablename__ = "app_users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    role = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AppUser(id='{self.id}', email='{self.email}')>"


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    lead_id = Column(Integer, nullable=True, index=True)
    document_id = Column(Integer, nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
