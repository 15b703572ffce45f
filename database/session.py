"""
Async SQLAlchemy engine and session factory.

The engine is owned by the application (``app.state``) rather than the
module, so each app instance (and each test) gets its own database.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from database.models import Base


def _engine_options(database_url: str) -> Dict[str, Any]:
    # SQLite pools do not take size / overflow arguments.
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20, "pool_recycle": 3600}


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False, **_engine_options(database_url))


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables defined on ``Base.metadata`` (idempotent)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function; use in FastAPI `Depends(get_db_session)`.

    Handlers commit their own writes so a failed commit still reaches the
    client as an error; anything left uncommitted is rolled back on close.
    """
    factory = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
