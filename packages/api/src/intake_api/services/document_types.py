# This project was developed with assistance from AI tools.
"""Read access to reference document types."""

from intake_db import DocumentType
from intake_db.enums import DocumentCategory
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


async def list_document_types(
    session: AsyncSession,
    category: DocumentCategory | None = None,
) -> list[DocumentType]:
    stmt = select(DocumentType).order_by(DocumentType.category, DocumentType.id)
    if category is not None:
        stmt = stmt.where(DocumentType.category == category)
    result = await session.execute(stmt)
    return list(result.scalars().all())
