"""Error taxonomy shared by the client and the CLI."""
from __future__ import annotations


class VisionDescribeError(Exception):
    """Base class for every failure raised by this package."""


class InvalidRequest(VisionDescribeError):
    """Request fields were rejected before any I/O happened."""


class TransportError(VisionDescribeError):
    """Connection-level failure: refused, reset, malformed HTTP or NDJSON."""


class ServiceError(TransportError):
    """The generation service answered, but with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CancelledError(VisionDescribeError):
    """The deadline expired or the attempt was cancelled between chunks."""


class MalformedStructure(VisionDescribeError):
    """Accumulated text did not decode into the expected record."""


class IncompleteResponse(VisionDescribeError):
    """A response buffer was requested before the stream completed cleanly."""
