"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LLM_API_KEY", "test-key")
os.environ.setdefault("LLM_API_URL", "http://llm.test/v1/chat/completions")

import json
from collections.abc import AsyncGenerator, Callable
from datetime import date
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from moodreel.api.movies import clear_search_cache, get_youtube_service
from moodreel.api.recommendations import get_stream_relay
from moodreel.db.database import get_db
from moodreel.main import app
from moodreel.models.base import Base
from moodreel.models.movie import Movie
from moodreel.services.llm.relay import StreamRelay

# Test database URL (uses SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_LLM_URL = "http://llm.test/v1/chat/completions"

# One shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def sse_body(*payloads: str) -> bytes:
    """Upstream-style SSE body with one `data:` event per payload."""
    return "".join(f"data: {payload}\n\n" for payload in payloads).encode()


def chunk(content: str) -> str:
    """OpenAI-style streamed chat-completion chunk carrying `content`."""
    return json.dumps({"choices": [{"index": 0, "delta": {"content": content}}]})


def make_relay(handler: Callable[[httpx.Request], httpx.Response]) -> StreamRelay:
    """StreamRelay whose upstream is answered by `handler`."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StreamRelay(client, TEST_LLM_URL, "test-key")


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """sse-starlette keeps a module-level exit event bound to the first loop."""
    from sse_starlette.sse import AppStatus

    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None
    yield


@pytest.fixture(autouse=True)
def reset_search_cache():
    clear_search_cache()
    yield
    clear_search_cache()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def add_movie(db_session: AsyncSession) -> Callable:
    """Factory inserting catalog rows."""
    counter = {"tmdb_id": 1000}

    async def _add(
        title: str,
        year: int | None = None,
        popularity: float | None = None,
        **fields,
    ) -> Movie:
        counter["tmdb_id"] += 1
        movie = Movie(
            tmdb_id=fields.pop("tmdb_id", counter["tmdb_id"]),
            title=title,
            release_date=date(year, 6, 1) if year else None,
            popularity=Decimal(str(popularity)) if popularity is not None else None,
            media_type=fields.pop("media_type", "movie"),
            **fields,
        )
        db_session.add(movie)
        await db_session.commit()
        await db_session.refresh(movie)
        return movie

    return _add


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the app with the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def use_llm():
    """Route the recommendation endpoint's upstream calls to a handler."""

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        app.dependency_overrides[get_stream_relay] = lambda: make_relay(handler)

    yield _install
    app.dependency_overrides.pop(get_stream_relay, None)


@pytest.fixture
def use_youtube():
    """Replace the trailer service with a fake."""

    def _install(service) -> None:
        app.dependency_overrides[get_youtube_service] = lambda: service

    yield _install
    app.dependency_overrides.pop(get_youtube_service, None)
