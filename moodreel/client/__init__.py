"""Client for the recommendation stream: decoding, catalog resolution, display."""

from moodreel.client.api_client import MoodreelClient
from moodreel.client.controller import RecommendationSession
from moodreel.client.decoder import IncrementalJSONDecoder
from moodreel.client.display import TrailerLookups, ViewItem, project
from moodreel.client.errors import StreamTransportError, UpstreamError
from moodreel.client.scheduler import ResolutionScheduler, indices_to_resolve
from moodreel.client.state import SessionState
from moodreel.client.types import Recommendation, ResolutionRecord, ResolutionStatus

__all__ = [
    "IncrementalJSONDecoder",
    "MoodreelClient",
    "Recommendation",
    "RecommendationSession",
    "ResolutionRecord",
    "ResolutionScheduler",
    "ResolutionStatus",
    "SessionState",
    "StreamTransportError",
    "TrailerLookups",
    "UpstreamError",
    "ViewItem",
    "indices_to_resolve",
    "project",
]
