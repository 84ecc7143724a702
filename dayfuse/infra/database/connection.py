import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.configs import configs

logger = logging.getLogger(__name__)

ASYNC_DATABASE_URL = configs.Database.async_url


def _engine_kwargs() -> dict[str, Any]:
    if configs.Database.Engine == "postgres":
        return {
            "pool_pre_ping": True,
            "pool_recycle": 1800,
            "pool_size": configs.Database.Postgres.PoolSize,
            "max_overflow": configs.Database.Postgres.MaxOverflow,
        }
    return {"connect_args": {"check_same_thread": False}}


async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False, future=True, **_engine_kwargs())

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_db_and_tables() -> None:
    # Import models so their tables are registered on SQLModel.metadata
    import dayfuse.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database ready ({configs.Database.Engine})")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_task_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for background work (sweeper, Celery tasks)."""
    async with AsyncSessionLocal() as session:
        yield session
