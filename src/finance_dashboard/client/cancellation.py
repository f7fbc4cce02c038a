"""Cooperative cancellation for in-flight fetches."""

import threading

from .errors import RequestCancelled


class CancellationToken:
    """
    Flag shared between a view and the fetches it started.

    Fetches check the token before dispatch and again before handing back
    their result, so a view that has gone away never receives late data.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, what: str = "request") -> None:
        if self._event.is_set():
            raise RequestCancelled(f"{what} cancelled")
