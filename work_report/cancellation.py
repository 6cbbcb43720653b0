"""Cooperative cancellation shared by the source adapters."""

from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """Raised when a run is cancelled while collecting data."""


class CancelToken:
    """Thin wrapper around :class:`threading.Event`."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("operation cancelled")

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)

    def interrupt(self, signum=None, frame=None) -> None:
        """Signal handler: cancel, then abort whatever the main thread is doing.

        Raising from the handler breaks out of a blocking socket read, so an
        in-flight request does not run on to its timeout. Worker threads see
        the cancelled token and stop their git processes.
        """

        self.cancel()
        raise OperationCancelled("interrupted")


def check(token: Optional[CancelToken]) -> None:
    """Raise :class:`OperationCancelled` if ``token`` is set."""

    if token is not None:
        token.raise_if_cancelled()
