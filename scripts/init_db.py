# /scripts/init_db.py
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy import text
from core.config import settings
from models import Base  # Импортируем Base, чтобы загрузить все модели

logger = logging.getLogger(__name__)


async def init_db(max_retries: int = 10, retry_delay: int = 2):
    logging.basicConfig(level=logging.INFO)

    engine = create_async_engine(settings.DATABASE_URL)

    for attempt in range(max_retries):
        try:
            logger.info(f"Attempting to connect and create tables, attempt {attempt + 1}/{max_retries}")

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

                result = await conn.execute(text("""
                    SELECT table_name
                    FROM information_schema.tables
                    WHERE table_schema = 'public'
                """))
                tables = [row[0] for row in result]
                logger.info(f"Tables in database after creation: {tables}")

                if tables:
                    logger.info("✅ Tables successfully created and visible in database!")
                    break
                logger.warning("❌ No tables found after creation attempt")

        except Exception as e:
            logger.error(f"Database initialization attempt {attempt + 1} failed: {e}", exc_info=True)
            if attempt < max_retries - 1:
                logger.info(f"Waiting {retry_delay} seconds before next attempt...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to initialize database after all attempts")
                raise

    await engine.dispose()
    logger.info("Engine disposed")


if __name__ == "__main__":
    asyncio.run(init_db())
