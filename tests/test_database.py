"""
Database Session Unit Tests

Tests for the request session lifecycle and after-commit callbacks.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _maker_for(session):
    maker = MagicMock()
    maker.return_value.__aenter__.return_value = session
    maker.return_value.__aexit__.return_value = False
    return maker


class TestGetDb:
    """Tests for get_db."""

    @pytest.mark.asyncio
    async def test_callbacks_run_after_commit(self, mock_async_session):
        """Verify queued side effects run once the commit succeeds."""
        from cohort_lms.core import database

        callback = AsyncMock()
        with patch.object(database, "get_session_maker", return_value=_maker_for(mock_async_session)):
            gen = database.get_db()
            session = await gen.__anext__()
            database.on_commit(session, callback, "user-1", kind="week_unlocked")
            callback.assert_not_awaited()

            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        mock_async_session.commit.assert_awaited_once()
        callback.assert_awaited_once_with("user-1", kind="week_unlocked")

    @pytest.mark.asyncio
    async def test_rollback_discards_callbacks(self, mock_async_session):
        """Verify a failed request rolls back and sends nothing."""
        from cohort_lms.core import database

        callback = AsyncMock()
        with patch.object(database, "get_session_maker", return_value=_maker_for(mock_async_session)):
            gen = database.get_db()
            session = await gen.__anext__()
            database.on_commit(session, callback)

            with pytest.raises(RuntimeError):
                await gen.athrow(RuntimeError("gate check failed"))

        mock_async_session.rollback.assert_awaited_once()
        mock_async_session.commit.assert_not_awaited()
        callback.assert_not_awaited()
        assert database.AFTER_COMMIT_KEY not in mock_async_session.info


class TestRunAfterCommit:
    """Tests for run_after_commit."""

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_the_rest(self, mock_async_session):
        """Verify one failed side effect is logged and the others still run."""
        from cohort_lms.core.database import on_commit, run_after_commit

        failing = AsyncMock(side_effect=OSError("smtp down"))
        following = AsyncMock()
        on_commit(mock_async_session, failing)
        on_commit(mock_async_session, following)

        await run_after_commit(mock_async_session)

        failing.assert_awaited_once()
        following.assert_awaited_once()
        assert mock_async_session.info == {}
