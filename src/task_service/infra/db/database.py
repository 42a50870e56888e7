from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from task_service.config import Settings


class Base(DeclarativeBase):
    pass


def make_engine(settings: Settings) -> AsyncEngine:
    kwargs = {"echo": settings.db_echo}
    if not settings.is_sqlite:
        # max open = pool_size + max_overflow
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.url, **kwargs)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    # Importing the row module registers the tasks table on Base.metadata.
    from task_service.infra.db import task_repo_sql  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
