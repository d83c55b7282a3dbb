"""Application constants - centralized configuration values."""

# =============================================================================
# Recommendations
# =============================================================================
RECOMMENDATION_COUNT = 10
MAX_GENRES = 3
MAX_PROMPT_RATINGS = 100  # Top-rated titles sent to the LLM
DEFAULT_MOOD = "whatever"

# =============================================================================
# Server-sent events
# =============================================================================
SSE_DONE = "[DONE]"
SSE_PING_INTERVAL = 15  # seconds between keep-alive comments

# =============================================================================
# Catalog search
# =============================================================================
MAX_SEARCH_RESULTS = 20
DEFAULT_SEARCH_RESULTS = 10
SEARCH_MAX_LENGTH = 100
CACHE_TTL_SEARCH = 60  # 1 minute
SEARCH_CACHE_MAX_SIZE = 100

# =============================================================================
# API Timeouts (in seconds)
# =============================================================================
API_TIMEOUT_DEFAULT = 10.0
API_TIMEOUT_EXTERNAL = 15.0
LLM_CONNECT_TIMEOUT = 10.0

# =============================================================================
# External URLs
# =============================================================================
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
IMDB_TITLE_URL = "https://www.imdb.com/title"
YOUTUBE_SEARCH_URL = "https://www.youtube.com/results"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch"

# =============================================================================
# Media Types
# =============================================================================
MEDIA_TYPE_MOVIE = "movie"
MEDIA_TYPE_TV = "tv"
MEDIA_TYPE_BOTH = "both"
