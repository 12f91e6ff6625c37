"""Cooperative cancellation for long-running analysis work."""

from __future__ import annotations

import threading
from typing import Optional


class AnalysisCancelled(Exception):
    """Raised when an analysis observes a cancelled token."""


class CancellationToken:
    """Thread-safe flag checked by workers between files."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("analysis was cancelled")


def check(token: Optional[CancellationToken]) -> None:
    """Raise :class:`AnalysisCancelled` when *token* is set; ``None`` never cancels."""
    if token is not None:
        token.raise_if_cancelled()
