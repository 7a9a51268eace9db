# This project was developed with assistance from AI tools.
"""Reference data seeding.

Inserts any document types from ``fixtures.DOCUMENT_TYPES`` that are not
already present (matched by name). Existing rows are never modified, so
running the seeder repeatedly is safe.
"""

import logging

from intake_db import DocumentType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .fixtures import DOCUMENT_TYPES

logger = logging.getLogger(__name__)


async def seed_document_types(session: AsyncSession) -> dict:
    """Insert missing reference document types. Returns a summary dict."""
    result = await session.execute(select(DocumentType.name))
    existing = set(result.scalars().all())

    created = []
    for fixture in DOCUMENT_TYPES:
        if fixture["name"] in existing:
            continue
        session.add(DocumentType(**fixture))
        created.append(fixture["name"])

    if created:
        await session.commit()
        logger.info("Seeded %d document types", len(created))
    else:
        logger.info("Document types already seeded")

    return {
        "created": created,
        "skipped": len(DOCUMENT_TYPES) - len(created),
    }
