"""
Realtime router: bridges the in-process change feed to browser WebSockets.

A connected client receives invitations addressed to it, join requests on
teams it captains, and its new notifications as JSON change events.
"""

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from arena.database import async_session
from arena.models.user import User
from arena.realtime import ChangeEvent, change_feed, subscribe_user_feeds
from arena.routers.auth import COOKIE_KEY, decode_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.websocket("/ws")
async def realtime_feed(websocket: WebSocket, token: Optional[str] = None):
    """
    Stream change events for the authenticated user until they disconnect.
    The token comes from the ``token`` query param or the auth cookie.
    """
    user_id = decode_user_id(token or websocket.cookies.get(COOKIE_KEY))
    if user_id:
        async with async_session() as db:
            user = await db.get(User, user_id)
        if user is None:
            user_id = None
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def send(event: ChangeEvent):
        await websocket.send_json(event.as_dict())

    subscriptions = subscribe_user_feeds(change_feed, user_id, send)
    logger.debug("User %s subscribed to realtime feed", user_id)
    try:
        # Clients do not send anything meaningful; reading detects disconnects
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        for sub in subscriptions:
            change_feed.unsubscribe(sub)
        logger.debug("User %s left realtime feed", user_id)
