from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storefront.db.base import Base
from storefront.db import models  # noqa: F401  registers tables on Base.metadata


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    """Create missing tables. Alembic owns the schema in deployed databases."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
