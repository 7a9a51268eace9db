# This project was developed with assistance from AI tools.
"""Per-file upload lifecycle value object."""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .classification import ClassificationVerdict


class UploadState(str, enum.Enum):
    VALIDATING = "validating"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"
    REJECTED = "rejected"

    @classmethod
    def terminal_states(cls) -> frozenset["UploadState"]:
        return frozenset({cls.COMPLETED, cls.ERROR, cls.REJECTED})


class FailureKind(str, enum.Enum):
    FILE_CONSTRAINT = "file_constraint"
    STORAGE = "storage"
    PERSISTENCE = "persistence"


class UploadEntry(BaseModel):
    """Immutable snapshot of one file's trip through the pipeline.

    Every transition produces a new snapshot (see ``services.upload_state``);
    the orchestrator swaps snapshots in its registry by ``correlation_id``.
    """

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    lead_id: int
    document_type_id: int
    filename: str
    size: int
    content_type: str
    state: UploadState
    skip_validation: bool = False
    verdict: ClassificationVerdict | None = None
    classifier_warning: str | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None
    suggested_document_type_id: int | None = None
    document_id: int | None = None
    file_path: str | None = None
    created_at: datetime
    updated_at: datetime
