"""Wake-up sources driven by tests or by a SimPy environment."""

from __future__ import annotations

import math
from typing import Callable

import simpy

from frame_batcher.core import IWakeupSource

from .clock import VirtualClock


class ManualFrameSource(IWakeupSource):
    """Collect one-shot callbacks and fire them on demand."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], None]] = []
        self.request_count = 0

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def request(self, callback: Callable[[], None]) -> None:
        self.request_count += 1
        self._callbacks.append(callback)

    def fire(self) -> int:
        """Run callbacks registered before this call; return how many ran."""
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        return len(callbacks)

    def run_until_idle(self, max_frames: int = 10_000) -> int:
        frames = 0
        while self._callbacks:
            if frames >= max_frames:
                raise RuntimeError(f"wake-ups still pending after {max_frames} frames")
            self.fire()
            frames += 1
        return frames


class DisplayRefreshSource(IWakeupSource):
    """Fire registered callbacks on a fixed refresh cadence of a SimPy environment.

    A tick whose slot has already been consumed by an overrunning frame is
    dropped; the next tick is aligned to the following refresh boundary.
    """

    def __init__(self, env: simpy.Environment, clock: VirtualClock, interval_ms: float) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        self._env = env
        self._clock = clock
        self._interval = float(interval_ms)
        self._callbacks: list[Callable[[], None]] = []
        self.ticks = 0
        self.dropped_ticks = 0
        self.errors: list[tuple[float, Exception]] = []
        self._process = env.process(self._refresh_loop())

    def request(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def _next_tick_delay(self) -> float:
        now = max(self._env.now, self._clock.now())
        next_tick = (math.floor(now / self._interval) + 1) * self._interval
        if next_tick - now < 1e-9:
            next_tick += self._interval
        skipped = int((next_tick - self._env.now) / self._interval + 1e-9) - 1
        if skipped > 0:
            self.dropped_ticks += skipped
        return next_tick - self._env.now

    def _refresh_loop(self):
        while True:
            yield self._env.timeout(self._next_tick_delay())
            self._clock.sync(self._env.now)
            self.ticks += 1
            callbacks, self._callbacks = self._callbacks, []
            for callback in callbacks:
                try:
                    callback()
                except Exception as exc:  # host loops keep running after a failed callback
                    self.errors.append((self._env.now, exc))
