# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ActivityType,
    AIValidationStatus,
    DocumentCategory,
    QualityAssessment,
    RedFlag,
    UploadStatus,
    UserRole,
    VerificationStatus,
)
from .models import (
    AppUser,
    AuditEvent,
    DocumentType,
    Lead,
    LeadDocument,
    LeadStatusHistory,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ActivityType",
    "AIValidationStatus",
    "DocumentCategory",
    "QualityAssessment",
    "RedFlag",
    "UploadStatus",
    "UserRole",
    "VerificationStatus",
    # Models
    "AppUser",
    "AuditEvent",
    "DocumentType",
    "Lead",
    "LeadDocument",
    "LeadStatusHistory",
]
