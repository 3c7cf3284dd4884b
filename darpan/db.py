"""Async database engine and session handling.

Connection details come from ``DB_*`` environment variables; nothing is
hard-coded here.
"""

from __future__ import annotations

from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.db.echo}
    # SQLite (used in tests) rejects pool sizing arguments
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.max_overflow,
            pool_pre_ping=True,
        )
    return kwargs


engine: AsyncEngine = create_async_engine(settings.db.url, **_engine_kwargs(settings.db.url))

SessionFactory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session per request; used as a FastAPI dependency."""
    async with SessionFactory() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    await engine.dispose()
