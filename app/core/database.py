from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.config import settings


def _engine_options() -> dict[str, Any]:
    """Pool options for the configured backend.

    SQLite (local development and tests) uses SQLAlchemy's default pool and
    ignores sizing arguments, so they are only passed for server databases.
    """
    if settings.is_sqlite:
        return {"connect_args": {"timeout": 30}}
    return {
        "pool_size": 10,
        "max_overflow": 20,  # total max = 30 connections
        "pool_pre_ping": True,  # Detects stale connections before use
        "pool_recycle": 300,
        "pool_timeout": 30,  # Wait up to 30s for a connection from pool
        "connect_args": {
            "command_timeout": 60,  # Query timeout in seconds (prevents hung queries)
        },
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    future=True,
    **_engine_options(),
)

async_session_maker = sessionmaker(  # type: ignore[call-overload]
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an async database session.

    Commits when the request handler returns and rolls back on any error,
    re-raising so storage failures reach the caller unchanged.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables (for development only - use Alembic in production)."""
    import app.models  # noqa: F401  # registers every table on SQLModel.metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
