"""SQLAlchemy models and API schemas."""

from moodreel.models.base import Base
from moodreel.models.movie import Movie

__all__ = [
    "Base",
    "Movie",
]
