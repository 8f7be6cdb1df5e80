"""Local session database configuration and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cakeout.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_async_database_url(url: str) -> str:
    """Convert a standard SQLite URL to an async-compatible URL.

    aiosqlite requires sqlite+aiosqlite://...
    """
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


# Create async engine
async_engine = create_async_engine(
    get_async_database_url(settings.database_url),
    echo=settings.debug,
)

# Create async session factory
async_session_factory = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create the local tables if they do not exist yet."""
    # Register models on the metadata before creating tables
    import cakeout.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
