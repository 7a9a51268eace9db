# This project was developed with assistance from AI tools.
"""Websocket push of refreshed views when watched tables change."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from fastapi import Request, WebSocket, WebSocketDisconnect

from ..services.changes import ChangeNotifier

logger = logging.getLogger(__name__)


def get_change_notifier(request: Request) -> ChangeNotifier:
    """FastAPI dependency: the app's notifier (created in the lifespan)."""
    return request.app.state.change_notifier


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def stream_refreshes(
    websocket: WebSocket,
    tables: Iterable[str],
    load_snapshot: Callable[[], Awaitable[dict]],
) -> None:
    """Send a snapshot on connect and again after every change to ``tables``.

    Bursts of changes that arrive while a snapshot is being built collapse
    into a single refresh. The subscription is closed when the client leaves.
    """
    notifier: ChangeNotifier = websocket.app.state.change_notifier
    await websocket.accept()

    async with notifier.subscribe(tables) as subscription:
        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            await websocket.send_json(await load_snapshot())
            while True:
                change = asyncio.create_task(subscription.get())
                done, _ = await asyncio.wait(
                    {change, disconnected}, return_when=asyncio.FIRST_COMPLETED
                )
                if disconnected in done:
                    change.cancel()
                    break
                subscription.drain()
                await websocket.send_json(await load_snapshot())
        except WebSocketDisconnect:
            pass
        finally:
            disconnected.cancel()
            logger.debug("Live view closed for %s", sorted(subscription.tables))
