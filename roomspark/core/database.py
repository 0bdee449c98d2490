"""
Database configuration and connection management
"""
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from roomspark.core.config import settings
from roomspark.database.models import Base


def _normalize_url(database_url: str) -> str:
    # Convert postgresql:// to postgresql+asyncpg:// for async support
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Create an async engine, skipping pool options sqlite does not accept"""
    url = _normalize_url(database_url)
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
    )


engine = create_engine_for_url(settings.database_url)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine = None):
    """Create all database tables"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_session(session_factory: async_sessionmaker = None):
    """Get async database session"""
    factory = session_factory or AsyncSessionLocal
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
