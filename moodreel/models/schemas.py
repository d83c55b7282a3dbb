"""Pydantic schemas for API validation and serialization."""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from moodreel.constants import (
    DEFAULT_MOOD,
    MAX_GENRES,
    MEDIA_TYPE_BOTH,
    MEDIA_TYPE_MOVIE,
    MEDIA_TYPE_TV,
)

if TYPE_CHECKING:
    from moodreel.models.movie import Movie


class MediaTypeEnum(str, Enum):
    """Which kind of titles to recommend."""

    MOVIE = MEDIA_TYPE_MOVIE
    TV = MEDIA_TYPE_TV
    BOTH = MEDIA_TYPE_BOTH


# Interest payload entries
class FavoriteTitle(BaseModel):
    """A title the user already likes."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=500)
    year: int | None = None

    @property
    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


class RatedTitle(FavoriteTitle):
    """A title from the user's IMDb ratings export."""

    user_rating: int = Field(ge=1, le=10)


# Interest requests (discriminated on interest_type)
class _InterestBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    mood: str = DEFAULT_MOOD
    media_type: MediaTypeEnum = MediaTypeEnum.MOVIE

    @field_validator("mood")
    @classmethod
    def normalize_mood(cls, v: str) -> str:
        return v.strip() or DEFAULT_MOOD

    def seen_titles(self) -> list[str]:
        """Titles the user supplied, which must never be recommended back."""
        return []


class ImdbRatingsInterest(_InterestBase):
    """Top-rated titles from an IMDb ratings export."""

    interest_type: Literal["imdb"] = "imdb"
    ratings: list[RatedTitle] = Field(min_length=1)

    def seen_titles(self) -> list[str]:
        return [r.label for r in self.ratings]


class FavoritesInterest(_InterestBase):
    """Hand-picked favorite titles."""

    interest_type: Literal["favorites"] = "favorites"
    favorite_movies: list[FavoriteTitle] = Field(min_length=1)

    def seen_titles(self) -> list[str]:
        return [f.label for f in self.favorite_movies]


class GenresInterest(_InterestBase):
    """Up to three favorite genres."""

    interest_type: Literal["genres"] = "genres"
    genres: list[str] = Field(min_length=1)

    @field_validator("genres")
    @classmethod
    def validate_genres(cls, v: list[str]) -> list[str]:
        """Drop blanks and case-insensitive duplicates, then enforce the cap."""
        seen: set[str] = set()
        genres = []
        for genre in v:
            name = genre.strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                genres.append(name)
        if not genres:
            raise ValueError("at least one genre is required")
        if len(genres) > MAX_GENRES:
            raise ValueError(f"at most {MAX_GENRES} distinct genres may be selected")
        return genres


InterestVariant = ImdbRatingsInterest | FavoritesInterest | GenresInterest

InterestRequest = Annotated[
    InterestVariant,
    Field(discriminator="interest_type"),
]

interest_request_adapter = TypeAdapter(InterestRequest)


# LLM request body
class ChatMessage(BaseModel):
    """One chat-completion message."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatCompletionBody(BaseModel):
    """OpenAI-compatible streaming chat-completion request."""

    model: str
    stream: bool = True
    response_format: dict[str, str] = Field(default_factory=lambda: {"type": "json_object"})
    messages: list[ChatMessage]


# Catalog schemas
class MatchRequest(BaseModel):
    """Title resolution request."""

    title: str = Field(min_length=1, max_length=500)
    year: int | None = None


class MovieDetail(BaseModel):
    """Catalog fields attached to a recommendation once it is matched."""

    title: str
    year: int | None = None
    description: str | None = None
    genres: list[str] = []
    imdb_id: str | None = None
    imdb_link: str | None = None
    imdb_rating: float | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    tmdb_id: int | None = None
    media_type: str | None = None

    @classmethod
    def from_movie(cls, movie: "Movie") -> "MovieDetail":
        return cls(
            title=movie.title or movie.original_title or "",
            year=movie.year,
            description=movie.overview,
            genres=movie.genres_list,
            imdb_id=movie.imdb_id,
            imdb_link=movie.imdb_link,
            imdb_rating=float(movie.vote_average) if movie.vote_average is not None else None,
            poster_path=movie.poster_url,
            backdrop_path=movie.backdrop_url,
            tmdb_id=movie.tmdb_id,
            media_type=movie.media_type,
        )


class CatalogEntry(BaseModel):
    """Catalog search result row."""

    tmdb_id: int
    title: str | None
    year: int | None
    release_date: date | None
    overview: str | None
    poster_path: str | None
    popularity: float | None
    vote_average: float | None
    media_type: str

    @classmethod
    def from_movie(cls, movie: "Movie") -> "CatalogEntry":
        return cls(
            tmdb_id=movie.tmdb_id,
            title=movie.title,
            year=movie.year,
            release_date=movie.release_date,
            overview=movie.overview,
            poster_path=movie.poster_url,
            popularity=float(movie.popularity) if movie.popularity is not None else None,
            vote_average=float(movie.vote_average) if movie.vote_average is not None else None,
            media_type=movie.media_type,
        )


class TrailerResponse(BaseModel):
    """First YouTube result for a trailer search."""

    video_id: str
    url: str
