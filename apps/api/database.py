"""
Async database engine, session factory and declarative base.
"""

from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import settings


def async_database_url(url: str) -> str:
    """Rewrite a plain postgres URL to use the asyncpg driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str) -> Dict[str, Any]:
    """Bounded pool: callers queue for a connection until the pool timeout."""
    options: Dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_size=max(int(settings.DB_POOL_SIZE), 1),
        max_overflow=0,
        pool_timeout=float(settings.DB_POOL_TIMEOUT_SECONDS),
    )
    return options


DATABASE_URL = async_database_url(settings.DATABASE_URL)

engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""
    async with async_session_maker() as session:
        yield session
