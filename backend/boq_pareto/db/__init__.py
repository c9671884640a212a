"""
Database Layer - Async SQLAlchemy engine + session factory.
"""
import logging
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from boq_pareto import config

logger = logging.getLogger("boq-pareto-db")

DEV_DATABASE_URL = "sqlite+aiosqlite:///./boq_pareto.db"


def normalize_database_url(raw_url: str) -> str:
    """Rewrite plain PostgreSQL URLs to the asyncpg driver form; empty means dev SQLite."""
    url = raw_url or DEV_DATABASE_URL
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_timeout": 5,
        "echo": False,
    }


DATABASE_URL = normalize_database_url(config.DATABASE_URL)
if not config.DATABASE_URL:
    logger.warning(f"DATABASE_URL not set — using {DEV_DATABASE_URL} (dev mode)")


class Base(DeclarativeBase):
    pass


engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind=None):
    """Create all tables, dropping them first when DB_RESET_ON_STARTUP is set."""
    from boq_pareto.models import orm_models  # noqa: F401
    target = bind or engine
    async with target.begin() as conn:
        if config.DB_RESET_ON_STARTUP:
            logger.warning("DB_RESET_ON_STARTUP=true — dropping all tables")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized.")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
