import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.engine import async_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session.

    Commits when the request handler returns, rolls back on any exception so a
    failed transition leaves the persisted project untouched.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back request session")
            await session.rollback()
            raise
