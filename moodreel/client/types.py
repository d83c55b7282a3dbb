"""Value types shared by the client-side pipeline."""

from dataclasses import dataclass
from enum import Enum

from moodreel.models.schemas import MovieDetail


@dataclass(frozen=True)
class Recommendation:
    """One LLM recommendation, identified by its position in the list."""

    title: str
    year: int | None
    reason: str


class ResolutionStatus(str, Enum):
    """Lifecycle of a catalog lookup for one recommendation index."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolutionRecord:
    status: ResolutionStatus
    detail: MovieDetail | None = None


@dataclass(frozen=True)
class DataLine:
    """Payload of one `data:` line."""

    payload: str


@dataclass(frozen=True)
class Sentinel:
    """End of stream (`data: [DONE]`)."""


SENTINEL = Sentinel()

StreamEvent = DataLine | Sentinel
