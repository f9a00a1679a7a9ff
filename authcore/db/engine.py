"""Async SQLAlchemy engine and request-scoped sessions."""

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authcore.core.errors import CredentialStoreError
from authcore.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)


class _EngineHolder:
    """Process-wide engine and session factory, created on first use."""

    engine: AsyncEngine | None = None
    factory: async_sessionmaker[AsyncSession] | None = None


_holder = _EngineHolder()


def engine_options(db: DatabaseSettings) -> dict[str, Any]:
    """Pool options for the configured backend; SQLite has no server pool to size."""
    if make_url(db.async_url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_size": db.pool_size,
        "max_overflow": db.max_overflow,
        "pool_pre_ping": True,
    }


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _holder.factory is None:
        db = DatabaseSettings()
        _holder.engine = create_async_engine(db.async_url, **engine_options(db))
        _holder.factory = async_sessionmaker(
            _holder.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine created for %s", _holder.engine.url.get_backend_name())
    return _holder.factory


async def dispose_engine() -> None:
    """Close pooled connections; the next session recreates the engine."""
    if _holder.engine is not None:
        await _holder.engine.dispose()
    _holder.engine = None
    _holder.factory = None


async def commit_session(session: AsyncSession) -> None:
    """Make the request's writes durable before any response carries their result."""
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("Commit failed: %s", type(exc).__name__)
        raise CredentialStoreError() from exc


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request.

    The commit after ``yield`` runs once the response is already sent; handlers
    whose response depends on durable writes call ``commit_session`` first.
    """
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
