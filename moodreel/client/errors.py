"""Errors raised by the recommendation client."""


class MoodreelClientError(Exception):
    """Base class for client errors."""


class UpstreamError(MoodreelClientError):
    """The server relayed an in-band error event instead of completion chunks."""

    def __init__(self, message: str, status: int | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    @classmethod
    def from_payload(cls, payload: dict) -> "UpstreamError":
        status = payload.get("status")
        details = payload.get("details")
        return cls(
            str(payload.get("error") or "Unknown error"),
            status=status if isinstance(status, int) else None,
            details=str(details) if details is not None else None,
        )

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (status {self.status})"
        return self.message


class StreamTransportError(MoodreelClientError):
    """The recommendation stream could not be opened or was cut off."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
