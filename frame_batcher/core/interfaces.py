"""Contracts for the collaborators the scheduler is composed with."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from frame_batcher.model import Completion


class IClock(ABC):
    """Monotonic clock in milliseconds."""

    @abstractmethod
    def now(self) -> float:
        """Return current time in milliseconds."""


class IWakeupSource(ABC):
    """Periodic wake-up source, e.g. a display-refresh callback."""

    @abstractmethod
    def request(self, callback: Callable[[], None]) -> None:
        """Register a callback fired once on the next wake-up."""


class IReconciler(ABC):
    """Reactivity runtime that applies updates."""

    @abstractmethod
    def enqueue(self, owner: Any, completion: Completion = None) -> None:
        """Register pending work for owner without running it."""

    @abstractmethod
    def flush(self) -> None:
        """Synchronously run all currently enqueued work."""
