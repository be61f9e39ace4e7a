"""
Общие фикстуры тестов.

База — SQLite в памяти (aiosqlite); схема создаётся из моделей на каждый тест.
Переменные окружения выставляются до импорта core.config.
"""

import os

os.environ.setdefault("BOT_TOKEN", "123456:TEST")
os.environ.setdefault("DATABASE_PASSWORD", "test")
os.environ.setdefault("STORAGE_BASE_URL", "https://storage.test")

from typing import Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models import Base
from models.proposal import Proposal
from models.user import User
from services.couple_service import CoupleService
from services.user_service import UserService
from utils.dates import utcnow


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ============ Factories ============

async def _create_user(session: AsyncSession, external_id: str, push_token: Optional[str] = None,
                    display_name: Optional[str] = None) -> User:
    user = await UserService(session).get_or_create_user(external_id, display_name=display_name)
    user.push_token = push_token
    await session.commit()
    return user


async def _create_preset(session: AsyncSession, title: str = "Прогулка", category: str = "date_spot",
                      **fields) -> Proposal:
    proposal = Proposal(
        title=title,
        category=category,
        is_preset=True,
        is_active=True,
        created_at=utcnow(),
        **fields,
    )
    session.add(proposal)
    await session.commit()
    return proposal


@pytest_asyncio.fixture
async def couple(session):
    """Активная пара: (alice, bob, couple_id). У alice есть push-токен"""
    alice = await _create_user(session, "tg-alice", push_token="ExponentPushToken[alice]", display_name="Alice")
    bob = await _create_user(session, "tg-bob", display_name="Bob")

    service = CoupleService(session)
    couple_id, code = await service.create(alice.id)
    await service.join(bob.id, code)
    return alice, bob, couple_id


@pytest_asyncio.fixture
async def make_user(session):
    async def _make(external_id: str, push_token: Optional[str] = None, display_name: Optional[str] = None):
        return await _create_user(session, external_id, push_token=push_token, display_name=display_name)
    return _make


@pytest_asyncio.fixture
async def make_preset(session):
    async def _make(title: str = "Прогулка", category: str = "date_spot", **fields):
        return await _create_preset(session, title=title, category=category, **fields)
    return _make
