"""
Shared fixtures: a fresh in-memory SQLite database per test.
"""
import os

# Must be set before qrmenu settings are first read.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPT_LOCK_BASE_DELAY_MS", "1")
os.environ.setdefault("OPT_LOCK_MAX_DELAY_MS", "5")
os.environ.setdefault("OPT_LOCK_JITTER_MS", "1")

import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from qrmenu import models  # noqa: F401
from qrmenu.db.database import Base, unit_of_work
from qrmenu.models import Restaurant


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def restaurant(db) -> Restaurant:
    r = Restaurant(name="Kahve Durağı", slug="kahve-duragi", enable_takeaway=True)
    async with unit_of_work(db):
        db.add(r)
    return r


@pytest_asyncio.fixture
async def other_restaurant(db) -> Restaurant:
    r = Restaurant(name="Other Place", slug="other-place")
    async with unit_of_work(db):
        db.add(r)
    return r
