"""Deterministic clock for simulations and tests."""

from __future__ import annotations

from frame_batcher.core import IClock


class VirtualClock(IClock):
    """Clock advanced explicitly by the simulated workload."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> None:
        if delta_ms < 0:
            raise ValueError("delta_ms must be >= 0")
        self._now += delta_ms

    def sync(self, at_ms: float) -> None:
        """Move forward to ``at_ms``; never moves backwards."""
        self._now = max(self._now, float(at_ms))
