"""Deadlines and cancellation tokens checked between streamed chunks."""
from __future__ import annotations
import threading
import time

from vision_describe.common.errors import CancelledError


class Deadline:
    """A point on the monotonic clock after which attempts must stop."""

    def __init__(self, expires_at: float) -> None:
        self.expires_at = expires_at

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class CancelToken:
    """Thread-safe explicit cancellation signal."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = "cancelled"

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def check_cancelled(deadline: Deadline | None, cancel: CancelToken | None) -> None:
    """Raise CancelledError if the token is set or the deadline has passed."""
    if cancel is not None and cancel.cancelled:
        raise CancelledError(cancel.reason)
    if deadline is not None and deadline.expired:
        raise CancelledError("deadline exceeded")
