"""Async SQLAlchemy database session and engine configuration."""

import logging
import subprocess

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from circuitflow.config import get_settings

logger = logging.getLogger(__name__)

_db_available = False


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ORM models."""

    pass


settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are cheap and must not outlive their event loop
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Check DB connectivity, then migrate or create tables."""
    global _db_available
    # Register tables on Base.metadata
    from circuitflow.models import circuit  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if not settings.auto_migrate_on_startup:
                await conn.run_sync(Base.metadata.create_all)

        if settings.auto_migrate_on_startup:
            subprocess.run(
                ["alembic", "upgrade", "head"],
                check=True,
                capture_output=True,
                text=True,
            )
        _db_available = True
        logger.info("Database connected.")
    except Exception as exc:
        _db_available = False
        logger.warning(
            "Database unavailable — running in simulation-only mode. "
            "Circuit persistence will not work. Error: %s",
            exc,
        )


async def close_db() -> None:
    """Dispose engine. Called during app shutdown."""
    await engine.dispose()


def is_db_available() -> bool:
    """Check if the database connection was established."""
    return _db_available
