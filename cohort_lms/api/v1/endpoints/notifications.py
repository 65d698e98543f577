"""
Notification Routes

WebSocket channel for real-time events. Clients authenticate with the same
JWT used for HTTP calls, passed as the ``token`` query parameter.
"""

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from cohort_lms.core.database import get_session_maker
from cohort_lms.core.security import subject_from_token
from cohort_lms.models.user import User
from cohort_lms.services.notification_service import manager


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def load_socket_user(token: Optional[str]) -> Optional[User]:
    """Resolve an active user from a socket token, or None."""
    user_id = subject_from_token(token)
    if user_id is None:
        return None
    async with get_session_maker()() as db:
        user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket, token: Optional[str] = None) -> None:
    """
    Register the socket for the caller's events. Admins also receive
    submission events for every student. Incoming text is answered with
    ``pong`` when it is ``ping`` and otherwise ignored.
    """
    user = await load_socket_user(token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user.id, is_admin=user.is_admin)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info("Socket disconnected for user %s", user.id)
    finally:
        manager.disconnect(websocket, user.id)
