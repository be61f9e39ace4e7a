#/core/database.py
"""
Движок PostgreSQL (asyncpg) и фабрика сессий.
Одна сессия на апдейт Telegram: её открывает DatabaseSessionMiddleware,
сервисы коммитят единицу работы сами.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
from sqlalchemy import text

from core.config import settings
import models  # noqa: F401  таблицы пар, свайпов, мэтчей и планов в Base.metadata
from models.base import Base

logger = logging.getLogger(__name__)

# ========== ENGINE ==========
# Пул фиксированного размера: сверх DATABASE_POOL_SIZE апдейты ждут соединение
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=0,
    pool_pre_ping=True,
)

# ========== SESSION FACTORY ==========
# Объекты остаются читаемыми после commit: хендлер отвечает по ним пользователю
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ========== SESSION ==========
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Сессия на один апдейт. Незакоммиченное при ошибке откатывается"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ========== SCHEMA ==========
async def init_db() -> None:
    """Создать таблицы pairdate (без миграций; для миграций — alembic)"""
    try:
        logger.info("Creating pairdate tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Tables ready")
    except Exception as e:
        logger.error(f"❌ Table creation failed: {e}", exc_info=True)
        raise


async def test_connection() -> bool:
    """SELECT 1 — доступна ли БД"""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("✅ Database reachable")
        return True
    except Exception as e:
        logger.error(f"❌ Database unreachable: {e}")
        return False


async def dispose_db() -> None:
    """Закрыть пул при остановке бота"""
    await engine.dispose()
    logger.info("Database pool disposed")
