"""
QR Menu Order Service - Async SQLAlchemy engine and sessions
"""
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from qrmenu.core.config import get_settings

settings = get_settings()

engine = create_async_engine(settings.database_url, pool_pre_ping=True, echo=settings.DEBUG)

# Objects stay readable after commit; services return them to the routers.
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Scoped transaction: commits when the block exits cleanly, rolls back on
    any exception. An implicit transaction left open by earlier reads on the
    same session is committed first so the block always starts fresh.
    """
    if db.in_transaction():
        await db.commit()
    async with db.begin():
        yield db
