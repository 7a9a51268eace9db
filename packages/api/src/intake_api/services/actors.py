# This project was developed with assistance from AI tools.
"""Actor display labels for activity entries.

Lookups are bounded and failure-tolerant: a slow or broken directory
yields an empty mapping and callers show "Unknown".
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from intake_db import AppUser
from intake_db.enums import UserRole
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR = "Unknown"


@dataclass(frozen=True)
class Actor:
    label: str
    role: UserRole


async def _fetch(session: AsyncSession, ids: list[str]) -> dict[str, Actor]:
    stmt = select(AppUser.id, AppUser.display_name, AppUser.email, AppUser.role).where(
        AppUser.id.in_(ids)
    )
    result = await session.execute(stmt)
    return {
        row.id: Actor(label=row.display_name or row.email, role=UserRole.from_raw(row.role))
        for row in result.all()
    }


async def resolve_actors(
    session: AsyncSession,
    actor_ids: Iterable[str | None],
    timeout: float = 2.0,
) -> dict[str, Actor]:
    """Map actor ids to display label and role. Never raises.

    The lookup runs in a savepoint under a transaction-local
    ``statement_timeout``, so the server cancels a slow query and the
    request session stays usable.
    """
    ids = sorted({actor_id for actor_id in actor_ids if actor_id})
    if not ids:
        return {}
    timeout_ms = max(1, int(timeout * 1000))
    try:
        async with session.begin_nested():
            await session.execute(
                select(func.set_config("statement_timeout", f"{timeout_ms}ms", True))
            )
            actors = await _fetch(session, ids)
            await session.execute(text("RESET statement_timeout"))
            return actors
    except SQLAlchemyError:
        logger.warning(
            "Actor lookup failed for %d ids; showing '%s'", len(ids), UNKNOWN_ACTOR, exc_info=True
        )
        return {}


def actor_label(actors: dict[str, Actor], actor_id: str | None) -> str:
    actor = actors.get(actor_id or "")
    return actor.label if actor else UNKNOWN_ACTOR
