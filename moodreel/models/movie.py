"""Movie catalog model (movies and TV shows imported from TMDB)."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moodreel.constants import IMDB_TITLE_URL, MEDIA_TYPE_MOVIE, TMDB_IMAGE_BASE_URL
from moodreel.models.base import Base, TimestampMixin


class Movie(Base, TimestampMixin):
    """A catalog title. Rows are loaded by an external ingestion job."""

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(primary_key=True)
    tmdb_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    imdb_id: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    media_type: Mapped[str] = mapped_column(String(10), nullable=False, default=MEDIA_TYPE_MOVIE)

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    original_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    tagline: Mapped[str | None] = mapped_column(String(500), nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    genres: Mapped[str | None] = mapped_column(Text, nullable=True)  # Comma separated

    release_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    runtime: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_of_seasons: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_of_episodes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    vote_average: Mapped[Decimal | None] = mapped_column(Numeric(3, 1), nullable=True, index=True)
    vote_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    popularity: Mapped[Decimal | None] = mapped_column(Numeric(10, 3), nullable=True, index=True)

    poster_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    backdrop_path: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("tmdb_id", "media_type", name="uq_movies_tmdb_id_media_type"),
        Index("ix_movies_title", "title"),
    )

    @property
    def year(self) -> int | None:
        return self.release_date.year if self.release_date else None

    @property
    def genres_list(self) -> list[str]:
        """Genres are stored as a comma separated string."""
        if not self.genres:
            return []
        return [g.strip() for g in self.genres.split(",") if g.strip()]

    @property
    def poster_url(self) -> str | None:
        return f"{TMDB_IMAGE_BASE_URL}{self.poster_path}" if self.poster_path else None

    @property
    def backdrop_url(self) -> str | None:
        return f"{TMDB_IMAGE_BASE_URL}{self.backdrop_path}" if self.backdrop_path else None

    @property
    def imdb_link(self) -> str | None:
        return f"{IMDB_TITLE_URL}/{self.imdb_id}" if self.imdb_id else None

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title={self.title}, year={self.year})>"
