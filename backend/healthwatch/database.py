import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from healthwatch.config import settings
from healthwatch.models import Base

logger = logging.getLogger("healthwatch.database")

MAX_INIT_RETRY_DELAY_SECONDS = 10.0

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_timeout=30,
    pool_recycle=settings.database_pool_recycle,
    pool_pre_ping=settings.database_pool_pre_ping,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def _init_retry_delay(attempt: int) -> float:
    return min(
        settings.database_init_retry_delay_seconds * attempt,
        MAX_INIT_RETRY_DELAY_SECONDS,
    )


async def init_db() -> None:
    """Check connectivity; create the alert tables in debug, otherwise defer to Alembic."""
    total_attempts = settings.database_init_retries + 1
    attempt = 0
    while True:
        attempt += 1
        try:
            async with engine.begin() as conn:
                if settings.debug:
                    await conn.run_sync(Base.metadata.create_all)
                    logger.info("Ensured tables: %s", ", ".join(sorted(Base.metadata.tables)))
                else:
                    logger.info("Schema is managed by Alembic; skipping create_all")
        except Exception as exc:
            if attempt >= total_attempts:
                logger.exception("Database unavailable after %d attempts", attempt)
                raise
            delay_seconds = _init_retry_delay(attempt)
            logger.warning(
                "Database not ready (attempt %d/%d, %s); retrying in %.1fs",
                attempt,
                total_attempts,
                exc.__class__.__name__,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)
            continue
        if attempt > 1:
            logger.info("Database ready after %d attempts", attempt)
        return


async def close_db() -> None:
    """Dispose of pooled connections."""
    await engine.dispose()


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error.

    Used by background work (evaluation passes, the outbox, the scheduler)
    that runs outside a request.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping :func:`get_db_context`."""
    async with get_db_context() as session:
        yield session
