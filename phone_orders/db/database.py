"""
Phone Orders — Async SQLAlchemy engine and session factory
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from phone_orders.core.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


def _engine_options(url: str) -> dict:
    # aiosqlite connections are cheap; pooling them only pins them to one loop
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.DEBUG,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
