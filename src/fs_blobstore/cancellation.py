"""Explicit cancellation tokens threaded through store operations."""

import threading

from .errors import OperationCancelledError


class CancellationToken:
    """
    Cooperative cancellation signal.

    The store checks the token on entry to every operation and hands it to
    caller-supplied writers so long-running production can stop early.
    Safe to cancel from any thread.
    """

    def __init__(self):
        self._event = threading.Event()

    @classmethod
    def none(cls) -> "CancellationToken":
        """Return a fresh token that nobody holds a reference to cancel."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """
        Raise if cancellation was requested.

        Raises:
            OperationCancelledError: If ``cancel()`` has been called
        """
        if self._event.is_set():
            raise OperationCancelledError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
