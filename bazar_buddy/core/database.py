"""Database configuration and session management."""

from pathlib import Path
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from .config import settings

# Create data directory for the default SQLite location
if settings.database.url.startswith("sqlite") and "./data/" in settings.database.url:
    data_dir = Path.cwd() / "data"
    data_dir.mkdir(exist_ok=True)

# Create async engine
engine = create_async_engine(
    settings.database.url,
    echo=settings.debug,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for ORM models
Base = declarative_base()


async def init_db(bind=None):
    """Initialize database tables."""
    # Models must be registered on Base.metadata before create_all
    from .. import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
