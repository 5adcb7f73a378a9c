"""Runtime types shared by the scheduler core and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


EnqueueFn = Callable[[Any, Optional[Callable[[], None]]], None]
Completion = Optional[Callable[[], None]]


class FrameState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"


class BatchPhase(str, Enum):
    """Which step of a wake-up produced a batch."""

    PROMISING = "promising"
    OPPORTUNISTIC = "opportunistic"
    FALLBACK = "fallback"
    BYPASS = "bypass"


class FailurePolicy(str, Enum):
    PROPAGATE = "propagate"
    REARM = "rearm"


@dataclass(slots=True)
class Task:
    """One deferred update attributed to an owner entity."""

    owner: Any
    enqueue_fn: EnqueueFn
    completion: Completion
    seq: int

    def apply(self) -> None:
        self.enqueue_fn(self.owner, self.completion)


@dataclass(slots=True)
class EstimationRecord:
    estimated_ms: Optional[float] = None

    @property
    def has_estimate(self) -> bool:
        return self.estimated_ms is not None


@dataclass(slots=True)
class FrameReport:
    """Outcome of one wake-up."""

    frame_id: int
    budget_ms: float
    remaining_ms: float
    batches: list[tuple[BatchPhase, int, float]] = field(default_factory=list)
    tasks_executed: int = 0
    fallback: bool = False
    backlog: int = 0
    rearmed: bool = False

    @property
    def elapsed_ms(self) -> float:
        return sum(elapsed for _, _, elapsed in self.batches)

    @property
    def overrun(self) -> bool:
        return self.remaining_ms < 0
