import asyncio
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carelink.config import settings
from carelink.models import Base

logger = logging.getLogger("carelink.database")

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_recycle=settings.database_pool_recycle,
    pool_pre_ping=settings.database_pool_pre_ping,
)

# Rows must stay readable after the per-write commits in SQLClinicStore.
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

MAX_RETRY_DELAY_SECONDS = 10.0


async def _prepare_schema() -> None:
    async with engine.begin() as conn:
        if settings.debug:
            await conn.run_sync(Base.metadata.create_all)
        else:
            await conn.exec_driver_sql("SELECT 1")


async def init_db() -> None:
    """Wait for the database at startup.

    Debug builds create the tables directly; everywhere else the schema is
    owned by Alembic and startup only checks the connection.
    """
    attempts = settings.database_init_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            await _prepare_schema()
        except Exception as exc:
            if attempt == attempts:
                logger.exception("Database unreachable after %d attempts", attempt)
                raise
            delay = min(settings.database_init_retry_delay_seconds * attempt, MAX_RETRY_DELAY_SECONDS)
            logger.warning(
                "Database not ready (%s), attempt %d/%d; retrying in %.1fs",
                type(exc).__name__,
                attempt,
                attempts,
                delay,
            )
            await asyncio.sleep(delay)
        else:
            logger.info("Database ready (attempt %d)", attempt)
            return


async def close_db() -> None:
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; the store commits each write itself."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
