"""
Notification Manager Unit Tests

Tests for per-user delivery, admin broadcast and dead socket cleanup.
"""

import uuid
from unittest.mock import AsyncMock

import pytest


def _socket():
    websocket = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


class TestNotificationManager:
    """Tests for NotificationManager."""

    @pytest.mark.asyncio
    async def test_send_to_user_reaches_every_socket(self):
        """Verify all of a user's sockets get the event envelope."""
        from cohort_lms.services.notification_service import WEEK_UNLOCKED, NotificationManager

        manager = NotificationManager()
        user_id = uuid.uuid4()
        first, second = _socket(), _socket()
        await manager.connect(first, user_id)
        await manager.connect(second, user_id)

        delivered = await manager.send_to_user(user_id, WEEK_UNLOCKED, {"week_number": 2})

        assert delivered == 2
        first.accept.assert_awaited_once()
        first.send_json.assert_awaited_once_with({"event": "week-unlocked", "data": {"week_number": 2}})

    @pytest.mark.asyncio
    async def test_offline_user_is_a_noop(self):
        """Verify sending to a disconnected user delivers nothing and does not raise."""
        from cohort_lms.services.notification_service import NotificationManager

        manager = NotificationManager()

        assert await manager.send_to_user(uuid.uuid4(), "week-unlocked", {}) == 0

    @pytest.mark.asyncio
    async def test_broadcast_only_reaches_admins(self):
        """Verify admin events skip student sockets."""
        from cohort_lms.services.notification_service import NEW_SUBMISSION, NotificationManager

        manager = NotificationManager()
        admin_socket, student_socket = _socket(), _socket()
        await manager.connect(admin_socket, uuid.uuid4(), is_admin=True)
        await manager.connect(student_socket, uuid.uuid4())

        delivered = await manager.broadcast_admins(NEW_SUBMISSION, {"week_number": 1})

        assert delivered == 1
        assert manager.admin_count == 1
        student_socket.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_socket_is_dropped(self):
        """Verify a socket that errors on send is removed."""
        from cohort_lms.services.notification_service import NotificationManager

        manager = NotificationManager()
        user_id = uuid.uuid4()
        dead = _socket()
        dead.send_json.side_effect = RuntimeError("closed")
        await manager.connect(dead, user_id, is_admin=True)

        delivered = await manager.send_to_user(user_id, "week-unlocked", {})

        assert delivered == 0
        assert manager.is_connected(user_id) is False
        assert manager.admin_count == 0
