"""Deduplicated one-shot wake-up registration."""

from __future__ import annotations

from typing import Callable

from .interfaces import IWakeupSource


class FrameTrigger:
    """Keep at most one outstanding wake-up request against the source."""

    def __init__(self, source: IWakeupSource, callback: Callable[[], None]) -> None:
        self._source = source
        self._callback = callback
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> bool:
        """Arm a wake-up; return False when one is already outstanding."""
        if self._pending:
            return False
        self._pending = True
        try:
            self._source.request(self._callback)
        except Exception:
            self._pending = False
            raise
        return True

    def clear(self) -> None:
        self._pending = False
