"""Host clock implementations."""

from __future__ import annotations

import time

from .interfaces import IClock


class MonotonicClock(IClock):
    """Wall-clock milliseconds from ``time.perf_counter``."""

    def now(self) -> float:
        return time.perf_counter() * 1000.0
