# This project was developed with assistance from AI tools.
"""Activity feed routes."""

from fastapi import APIRouter, Depends, Query, WebSocket
from intake_db import SessionLocal, get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.activity import ActivityFeedResponse
from ..services.activity import get_activity_feed
from ..services.changes import LEAD_DOCUMENTS, LEAD_STATUS_HISTORY
from ._live import stream_refreshes

router = APIRouter()


async def _load_feed(session: AsyncSession, limit: int) -> ActivityFeedResponse:
    events = await get_activity_feed(
        session,
        limit=limit,
        source_limit=max(settings.ACTIVITY_SOURCE_LIMIT, limit),
        actor_timeout=settings.ACTOR_LOOKUP_TIMEOUT_SECONDS,
    )
    return ActivityFeedResponse(data=events, count=len(events))


@router.get("/activity", response_model=ActivityFeedResponse)
async def get_activity(
    limit: int = Query(default=settings.ACTIVITY_FEED_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
) -> ActivityFeedResponse:
    """Recent status changes and document events, newest first."""
    return await _load_feed(session, limit)


@router.websocket("/activity/ws")
async def activity_ws(websocket: WebSocket) -> None:
    """Push the feed on connect and whenever either source changes."""

    async def snapshot() -> dict:
        async with SessionLocal() as session:
            feed = await _load_feed(session, settings.ACTIVITY_FEED_LIMIT)
        return {"type": "activity", **feed.model_dump(mode="json")}

    await stream_refreshes(websocket, [LEAD_STATUS_HISTORY, LEAD_DOCUMENTS], snapshot)
