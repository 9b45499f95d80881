import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with the per-request query counter attached."""
    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Module-level so tests can swap in their own engine via dependency override.
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG, pool_pre_ping=True)
async_session = build_sessionmaker(engine)


async def get_db():
    """
    One session per request, committed when the route returns and rolled
    back when anything (including an auth or validation error) escapes.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            logger.debug("Rolling back request transaction: %s", type(exc).__name__)
            await session.rollback()
            raise
