"""Build the chat-completion request for a recommendation submission."""

from moodreel.constants import DEFAULT_MOOD, MAX_PROMPT_RATINGS, RECOMMENDATION_COUNT
from moodreel.models.schemas import (
    ChatCompletionBody,
    ChatMessage,
    FavoritesInterest,
    GenresInterest,
    ImdbRatingsInterest,
    InterestRequest,
    MediaTypeEnum,
)

SYSTEM_PROMPT = (
    "You are a movie and TV show recommendation assistant. "
    "Respond ONLY with the requested JSON format. "
    "DO NOT recommend any titles mentioned by the user, they do not want to see them again."
)

RESPONSE_FORMAT = """{
  "recommendations": [
    {
      "title": "Movie or TV Show Title",
      "year": YYYY,
      "reason": "A brief explanation of 1-2 sentences on why this title is recommended for me based on my interests."
    },
    {
      "title": "Another Title",
      "year": YYYY,
      "reason": "..."
    }
  ]
}"""

_MEDIA_SCOPE = {
    MediaTypeEnum.MOVIE: "movies",
    MediaTypeEnum.TV: "TV shows",
    MediaTypeEnum.BOTH: "movies or TV shows",
}


def _interest_section(request: InterestRequest) -> str:
    if isinstance(request, ImdbRatingsInterest):
        ratings = sorted(request.ratings, key=lambda r: r.user_rating, reverse=True)
        rendered = ", ".join(
            f"{r.label} - {r.user_rating}/10" for r in ratings[:MAX_PROMPT_RATINGS]
        )
        return f"My rated movies/shows (Title (Year) - Rating/10):\n{rendered}"
    if isinstance(request, FavoritesInterest):
        rendered = "\n".join(f.label for f in request.favorite_movies)
        return f"Some of my favorite movies/shows are:\n{rendered}"
    if isinstance(request, GenresInterest):
        return f"I enjoy the following genres:\n{', '.join(request.genres)}"
    raise TypeError(f"unsupported interest request: {type(request).__name__}")


def _mood_phrase(mood: str) -> str:
    if mood.lower() == DEFAULT_MOOD:
        return "flexible, surprise me!"
    return mood.replace("-", " ")


def build_user_prompt(request: InterestRequest) -> str:
    """Render the user message: interests, scope, mood and reply shape."""
    return (
        f"Based on my interests below, please recommend {RECOMMENDATION_COUNT} new titles "
        "that I haven't seen before.\n\n"
        f"{_interest_section(request)}\n\n"
        f"Scope the recommendations down to {_MEDIA_SCOPE[request.media_type]}.\n"
        f"My current mood is: {_mood_phrase(request.mood)}.\n\n"
        "Please respond ONLY with a single JSON object in this exact format and nothing else:\n"
        f"{RESPONSE_FORMAT}\n\n"
        f"The \"recommendations\" array must contain exactly {RECOMMENDATION_COUNT} entries, "
        "none of them titles listed above."
    )


def build_chat_completion(request: InterestRequest, model: str) -> ChatCompletionBody:
    """Map a validated interest request to a streaming chat-completion body."""
    messages = [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=build_user_prompt(request)),
    ]

    seen = request.seen_titles()
    if seen:
        messages.append(
            ChatMessage(
                role="system",
                content=(
                    "I will make sure to avoid recommending the following titles: "
                    + ", ".join(seen)
                ),
            )
        )

    return ChatCompletionBody(model=model, messages=messages)
