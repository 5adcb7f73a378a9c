from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from frame_batcher.core import FrameBatchScheduler
from frame_batcher.sim import ManualFrameSource, SimOwner, SimulatedReconciler, VirtualClock


@dataclass
class Harness:
    scheduler: FrameBatchScheduler
    reconciler: SimulatedReconciler
    frames: ManualFrameSource
    clock: VirtualClock

    def owner(self, name: str, cost_ms: float, *, estimate: float | None = None, **kwargs: Any) -> SimOwner:
        owner = SimOwner(id=name, cost_ms=cost_ms, **kwargs)
        if estimate is not None:
            self.scheduler.estimator.record(owner, estimate)
        return owner

    def flushed_ids(self) -> list[list[str]]:
        return [[owner.id for owner in batch] for batch in self.reconciler.flushes]


def build_harness(budget: float = 10.0, **kwargs: Any) -> Harness:
    clock = VirtualClock()
    reconciler = SimulatedReconciler(clock)
    frames = ManualFrameSource()
    scheduler = FrameBatchScheduler(reconciler, frames, clock, frame_budget_ms=budget, **kwargs)
    return Harness(scheduler=scheduler, reconciler=reconciler, frames=frames, clock=clock)


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def make_harness():
    return build_harness
