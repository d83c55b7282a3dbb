"""Async engine and sessions for the movie catalog."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from moodreel.config import get_settings

settings = get_settings()


def _pool_options(url: str) -> dict[str, int]:
    """Pool sizing only applies to server databases, not SQLite."""
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_recycle": 1800}


engine = create_async_engine(
    settings.database_url_async,
    pool_pre_ping=True,
    **_pool_options(settings.database_url_async),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create the catalog table if the ingestion job has not yet."""
    from moodreel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session. Catalog endpoints only read, so nothing is committed."""
    async with async_session_maker() as session:
        yield session
