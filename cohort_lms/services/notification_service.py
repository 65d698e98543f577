"""
Notification Service

In-process registry of WebSocket connections. Events are delivered to a
single student's sockets or broadcast to every connected admin. Delivery
is best-effort: dead sockets are dropped and send failures never reach the
caller.
"""

import logging
import uuid
from collections import defaultdict
from typing import Any

from fastapi import WebSocket


logger = logging.getLogger(__name__)


# Event names
NEW_SUBMISSION = "new-submission"
SUBMISSION_REVIEWED = "submission-reviewed"
WEEK_UNLOCKED = "week-unlocked"
PHASE_APPROVED = "phase-approved"
CERTIFICATE_ISSUED = "certificate-issued"


class NotificationManager:
    """Tracks open sockets per user and the admin observer set."""

    def __init__(self) -> None:
        self._connections: dict[uuid.UUID, list[WebSocket]] = defaultdict(list)
        self._admins: set[uuid.UUID] = set()

    async def connect(self, websocket: WebSocket, user_id: uuid.UUID, is_admin: bool = False) -> None:
        await websocket.accept()
        self._connections[user_id].append(websocket)
        if is_admin:
            self._admins.add(user_id)
        logger.info("Socket connected for user %s (admin=%s)", user_id, is_admin)

    def disconnect(self, websocket: WebSocket, user_id: uuid.UUID) -> None:
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            del self._connections[user_id]
            self._admins.discard(user_id)

    def is_connected(self, user_id: uuid.UUID) -> bool:
        return bool(self._connections.get(user_id))

    @property
    def admin_count(self) -> int:
        return len(self._admins)

    async def _deliver(self, user_id: uuid.UUID, message: dict[str, Any]) -> int:
        delivered = 0
        for websocket in list(self._connections.get(user_id, [])):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping socket for user %s: %s", user_id, e)
                self.disconnect(websocket, user_id)
        return delivered

    async def send_to_user(self, user_id: uuid.UUID, event: str, data: dict[str, Any]) -> int:
        """
        Deliver an event to every socket of one user.

        Returns:
            Number of sockets the event reached.
        """
        return await self._deliver(user_id, {"event": event, "data": data})

    async def broadcast_admins(self, event: str, data: dict[str, Any]) -> int:
        """Deliver an event to all connected admins."""
        message = {"event": event, "data": data}
        delivered = 0
        for admin_id in list(self._admins):
            delivered += await self._deliver(admin_id, message)
        return delivered


# Global notification manager
manager = NotificationManager()
