"""FastAPI application: recommendation stream, catalog endpoints, monitoring."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from moodreel.api import api_router
from moodreel.config import get_settings
from moodreel.db import async_session_maker, init_db
from moodreel.utils.http_client import close_all_clients
from moodreel.utils.logging import get_logger, setup_logging
from moodreel.utils.metrics import MetricsMiddleware, metrics

VERSION = "0.1.0"

settings = get_settings()
setup_logging()
logger = get_logger(__name__)

_started_at = datetime.now(UTC)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    if not settings.llm_api_key:
        logger.warning("LLM_API_KEY is not set, upstream completions will be rejected")
    logger.info(f"{settings.app_name} started (env={settings.app_env}, model={settings.llm_model})")

    yield

    await close_all_clients()
    logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)

app.include_router(api_router)


async def _database_status() -> str:
    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check: database unreachable: {e}")
        return "unhealthy"
    return "healthy"


@app.get("/health", tags=["monitoring"])
async def health_check() -> JSONResponse:
    """Liveness plus a catalog database check; 503 when degraded."""
    database = await _database_status()
    now = datetime.now(UTC)
    body = {
        "status": "healthy" if database == "healthy" else "degraded",
        "timestamp": now.isoformat(),
        "uptime_seconds": (now - _started_at).total_seconds(),
        "version": VERSION,
        "checks": {"database": {"status": database}},
    }
    return JSONResponse(content=body, status_code=200 if database == "healthy" else 503)


@app.get("/metrics", tags=["monitoring"])
async def prometheus_metrics() -> Response:
    return Response(content=metrics.format_prometheus(), media_type="text/plain; charset=utf-8")
