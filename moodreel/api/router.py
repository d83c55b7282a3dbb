"""Main API router."""

from fastapi import APIRouter

from moodreel.api.movies import router as movies_router
from moodreel.api.recommendations import router as recommendations_router

api_router = APIRouter(prefix="/api")

api_router.include_router(movies_router, prefix="/movies", tags=["movies"])
api_router.include_router(recommendations_router, prefix="/recommendations", tags=["recommendations"])
