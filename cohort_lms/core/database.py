"""
Database Configuration

Async SQLAlchemy 2.0 setup with the asyncpg driver for PostgreSQL.
"""

import logging
import ssl
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


logger = logging.getLogger(__name__)

# Session.info key holding callbacks queued by on_commit()
AFTER_COMMIT_KEY = "after_commit"


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    All models should inherit from this class.
    """
    pass


# Module-level engine instance (lazily initialized)
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_url_and_args() -> tuple[str, dict]:
    """Strip libpq query params asyncpg rejects and build connect args."""
    from cohort_lms.core.config import settings

    db_url = settings.DATABASE_URL
    if "?" in db_url:
        db_url = db_url.split("?")[0]

    connect_args: dict = {}
    if settings.DATABASE_SSL:
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_context

    return db_url, connect_args


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine.

    Lazy initialization to avoid import-time database connection issues.
    """
    global _engine
    if _engine is None:
        from cohort_lms.core.config import settings

        db_url, connect_args = _engine_url_and_args()
        _engine = create_async_engine(
            db_url,
            echo=settings.is_development,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args=connect_args,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    The session is committed when the request handler returns and rolled
    back if it raises, so a failed gate check never leaves partial writes.
    Callbacks queued with on_commit() run only after a successful commit.

    Yields:
        AsyncSession: An async database session.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            session.info.pop(AFTER_COMMIT_KEY, None)
            await session.rollback()
            raise
        else:
            await run_after_commit(session)
        finally:
            await session.close()


def on_commit(
    session: AsyncSession,
    callback: Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> None:
    """
    Queue an async side effect (notification, email) for after the commit.

    Nothing queued runs if the transaction rolls back.
    """
    session.info.setdefault(AFTER_COMMIT_KEY, []).append((callback, args, kwargs))


async def run_after_commit(session: AsyncSession) -> None:
    """
    Run and clear the callbacks queued on ``session``.

    Failures are logged and never raised; the data is already committed.
    """
    callbacks = session.info.pop(AFTER_COMMIT_KEY, [])
    for callback, args, kwargs in callbacks:
        try:
            await callback(*args, **kwargs)
        except Exception:
            logger.exception("After-commit callback %r failed", callback)


async def init_db() -> None:
    """
    Initialize database tables.

    Note: In production, use Alembic migrations instead.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
