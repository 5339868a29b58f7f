"""Database initialization script"""

import asyncio
import logging
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from transit_registry.core.config import settings

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize database with the PostGIS extension"""

    logger.info("Initializing database...")

    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

    async with engine.begin() as conn:
        # Region proximity and transforms rely on PostGIS
        logger.info("Enabling PostGIS extension...")
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis;"))

    await engine.dispose()

    logger.info("Database initialization complete. Run 'alembic upgrade head' to apply migrations.")


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(init_db())
