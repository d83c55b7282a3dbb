"""Tests for chat-completion prompt construction."""

import pytest
from pydantic import ValidationError

from moodreel.models.schemas import (
    FavoriteTitle,
    FavoritesInterest,
    GenresInterest,
    ImdbRatingsInterest,
    MediaTypeEnum,
    RatedTitle,
    interest_request_adapter,
)
from moodreel.services.llm.prompt import SYSTEM_PROMPT, build_chat_completion, build_user_prompt

MODEL = "test-model"


class TestBuildChatCompletion:
    """Tests for build_chat_completion."""

    def test_genres_request(self):
        """Genres interest with a hyphenated mood, scoped to TV."""
        request = GenresInterest(genres=["Comedy", "Drama"], mood="feel-good", media_type="tv")
        body = build_chat_completion(request, MODEL)

        assert body.model == MODEL
        assert body.stream is True
        assert body.response_format == {"type": "json_object"}
        assert len(body.messages) == 2

        system, user = body.messages
        assert system.role == "system"
        assert system.content == SYSTEM_PROMPT
        assert user.role == "user"
        assert "I enjoy the following genres:\nComedy, Drama" in user.content
        assert "feel good" in user.content
        assert "TV shows" in user.content

    def test_favorites_add_exclusion_message(self):
        request = FavoritesInterest(
            favorite_movies=[
                FavoriteTitle(title="Heat", year=1995),
                FavoriteTitle(title="Collateral", year=2004),
            ]
        )
        body = build_chat_completion(request, MODEL)

        assert len(body.messages) == 3
        exclusion = body.messages[2]
        assert exclusion.role == "system"
        assert exclusion.content == (
            "I will make sure to avoid recommending the following titles: "
            "Heat (1995), Collateral (2004)"
        )
        assert "Heat (1995)\nCollateral (2004)" in body.messages[1].content

    def test_imdb_ratings_sorted_by_rating(self):
        request = ImdbRatingsInterest(
            ratings=[
                RatedTitle(title="Okay Film", year=2001, user_rating=6),
                RatedTitle(title="Great Film", year=1999, user_rating=10),
            ]
        )
        user = build_chat_completion(request, MODEL).messages[1].content

        assert "Great Film (1999) - 10/10, Okay Film (2001) - 6/10" in user
        assert "Great Film (1999)" in build_chat_completion(request, MODEL).messages[2].content

    def test_default_mood_is_a_surprise(self):
        request = GenresInterest(genres=["Horror"], mood="Whatever")
        assert "flexible, surprise me!" in build_user_prompt(request)

    def test_media_scope_both(self):
        request = GenresInterest(genres=["Horror"], media_type=MediaTypeEnum.BOTH)
        assert "movies or TV shows" in build_user_prompt(request)


class TestInterestValidation:
    """Tests for interest request validation."""

    def test_discriminator_selects_variant(self):
        request = interest_request_adapter.validate_python(
            {"interest_type": "genres", "genres": ["Action"]}
        )
        assert isinstance(request, GenresInterest)
        assert request.mood == "whatever"
        assert request.media_type is MediaTypeEnum.MOVIE

    def test_genres_deduplicated_case_insensitively(self):
        request = GenresInterest(genres=["Drama", "drama", " Comedy ", "DRAMA"])
        assert request.genres == ["Drama", "Comedy"]

    def test_more_than_three_genres_rejected(self):
        with pytest.raises(ValidationError):
            GenresInterest(genres=["Action", "Drama", "Comedy", "Horror"])

    def test_empty_genres_rejected(self):
        with pytest.raises(ValidationError):
            GenresInterest(genres=[])
        with pytest.raises(ValidationError):
            GenresInterest(genres=["  "])

    def test_empty_favorites_rejected(self):
        with pytest.raises(ValidationError):
            FavoritesInterest(favorite_movies=[])

    def test_unknown_interest_type_rejected(self):
        with pytest.raises(ValidationError):
            interest_request_adapter.validate_python({"interest_type": "books"})

    def test_blank_mood_falls_back_to_default(self):
        assert GenresInterest(genres=["Action"], mood="   ").mood == "whatever"
