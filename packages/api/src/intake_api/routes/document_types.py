# This project was developed with assistance from AI tools.
"""Reference document type routes."""

from fastapi import APIRouter, Depends, Query
from intake_db import get_db
from intake_db.enums import DocumentCategory
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.document import DocumentTypeListResponse, DocumentTypeResponse
from ..services.document_types import list_document_types

router = APIRouter()


@router.get("/document-types", response_model=DocumentTypeListResponse)
async def get_document_types(
    category: DocumentCategory | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> DocumentTypeListResponse:
    """List uploadable document types, optionally for one category."""
    doc_types = await list_document_types(session, category)
    items = [DocumentTypeResponse.model_validate(dt) for dt in doc_types]
    return DocumentTypeListResponse(data=items, count=len(items))
