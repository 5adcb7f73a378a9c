"""Simulated reactivity runtime."""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Any, Callable

from frame_batcher.core import IReconciler
from frame_batcher.model import Completion, OwnerSpec

from .clock import VirtualClock


class SimulatedUpdateError(RuntimeError):
    """Raised by a flush when an owner is configured to fail."""


@dataclass(eq=False)
class SimOwner:
    """Owner entity of the simulated runtime; compared by identity."""

    id: str
    cost_ms: float
    kind: str = "component"
    jitter_ms: float = 0.0
    fail: bool = False

    @classmethod
    def from_spec(cls, spec: OwnerSpec) -> "SimOwner":
        return cls(
            id=spec.id,
            cost_ms=spec.cost_ms,
            kind=spec.kind,
            jitter_ms=spec.jitter_ms,
            fail=spec.fail,
        )


class SimulatedReconciler(IReconciler):
    """Enqueue owners and charge their cost to a virtual clock on flush."""

    def __init__(
        self,
        clock: VirtualClock,
        cost_of: Callable[[Any], float] | None = None,
        *,
        seed: int | None = None,
    ) -> None:
        self._clock = clock
        self._cost_of = cost_of or self._owner_cost
        self._rng = random.Random(seed)
        self._pending: list[tuple[Any, Completion]] = []
        self.applied: list[Any] = []
        self.flushes: list[list[Any]] = []
        self.completed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def enqueue(self, owner: Any, completion: Completion = None) -> None:
        self.applied.append(owner)
        self._pending.append((owner, completion))

    def flush(self) -> None:
        flushed: list[Any] = []
        # Completions may enqueue more work; keep going until drained.
        while self._pending:
            work, self._pending = self._pending, []
            for owner, _ in work:
                self._clock.advance(self._cost_of(owner))
                if getattr(owner, "fail", False):
                    raise SimulatedUpdateError(f"update of {getattr(owner, 'id', owner)!r} failed")
                flushed.append(owner)
            for _, completion in work:
                if completion is not None:
                    completion()
                self.completed += 1
        self.flushes.append(flushed)

    def _owner_cost(self, owner: Any) -> float:
        cost = float(getattr(owner, "cost_ms", 0.0))
        jitter = float(getattr(owner, "jitter_ms", 0.0))
        if jitter > 0:
            cost += self._rng.uniform(-jitter, jitter)
        return max(0.0, cost)
