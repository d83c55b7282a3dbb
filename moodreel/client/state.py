"""Session state for one recommendation submission, and its transitions.

`SessionState` is immutable; every event produces a new state through one
of the functions below. The controller owns the only reference, so a
transition applied between two awaits can never interleave with another.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from moodreel.client.types import Recommendation, ResolutionRecord, ResolutionStatus
from moodreel.models.schemas import MovieDetail


class InvalidTransition(RuntimeError):
    """A transition would break a state invariant."""


def _frozen(mapping: dict[int, ResolutionRecord]) -> Mapping[int, ResolutionRecord]:
    return MappingProxyType(mapping)


@dataclass(frozen=True)
class SessionState:
    recommendations: tuple[Recommendation, ...] = ()
    resolutions: Mapping[int, ResolutionRecord] = field(
        default_factory=lambda: _frozen({})
    )
    generating: bool = False
    error: str | None = None


def submission_started() -> SessionState:
    """Fresh state for a new submission; previous resolutions are discarded."""
    return SessionState(generating=True)


def recommendations_received(
    state: SessionState, recommendations: tuple[Recommendation, ...]
) -> SessionState:
    if len(recommendations) < len(state.recommendations):
        raise InvalidTransition("recommendation list cannot shrink")
    return replace(state, recommendations=recommendations)


def lookup_scheduled(state: SessionState, index: int) -> SessionState:
    if index in state.resolutions:
        raise InvalidTransition(f"index {index} already scheduled")
    if index >= len(state.recommendations):
        raise InvalidTransition(f"index {index} has no recommendation")
    resolutions = dict(state.resolutions)
    resolutions[index] = ResolutionRecord(ResolutionStatus.PENDING)
    return replace(state, resolutions=_frozen(resolutions))


def _complete(state: SessionState, index: int, record: ResolutionRecord) -> SessionState:
    current = state.resolutions.get(index)
    if current is None or current.status is not ResolutionStatus.PENDING:
        raise InvalidTransition(f"index {index} is not pending")
    resolutions = dict(state.resolutions)
    resolutions[index] = record
    return replace(state, resolutions=_frozen(resolutions))


def lookup_resolved(state: SessionState, index: int, detail: MovieDetail) -> SessionState:
    return _complete(state, index, ResolutionRecord(ResolutionStatus.RESOLVED, detail))


def lookup_failed(state: SessionState, index: int) -> SessionState:
    return _complete(state, index, ResolutionRecord(ResolutionStatus.FAILED))


def stream_failed(state: SessionState, message: str) -> SessionState:
    return replace(state, generating=False, error=message)


def stream_finished(state: SessionState) -> SessionState:
    return replace(state, generating=False)


class SessionStore:
    """Holds the current SessionState and notifies a listener on every change."""

    def __init__(self, on_change=None) -> None:
        self.state = SessionState()
        self._on_change = on_change

    def apply(self, transition, *args) -> SessionState:
        self.state = transition(self.state, *args)
        if self._on_change is not None:
            self._on_change(self.state)
        return self.state

    def reset(self) -> SessionState:
        self.state = submission_started()
        if self._on_change is not None:
            self._on_change(self.state)
        return self.state
