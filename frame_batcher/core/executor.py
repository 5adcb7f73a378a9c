"""Batch execution primitive: apply, flush, measure, record."""

from __future__ import annotations

from collections.abc import Sequence
from contextvars import ContextVar
from typing import Optional

from frame_batcher.model import Task

from .estimator import CostEstimator
from .interfaces import IClock, IReconciler


# Executor whose apply phase is on the current call path, if any.
_APPLYING: ContextVar[Optional["BatchExecutor"]] = ContextVar("frame_batcher_applying", default=None)


class BatchExecutor:
    """Run tasks through the reconciler as one flush and learn its cost."""

    def __init__(self, reconciler: IReconciler, clock: IClock, estimator: CostEstimator) -> None:
        self._reconciler = reconciler
        self._clock = clock
        self._estimator = estimator

    @property
    def applying(self) -> bool:
        """True while this executor is handing tasks to the reconciler."""
        return _APPLYING.get() is self

    def execute(self, tasks: Sequence[Task], *, record: bool = True) -> float:
        if not tasks:
            raise ValueError("cannot execute an empty batch")

        token = _APPLYING.set(self)
        try:
            for task in tasks:
                task.apply()
        finally:
            _APPLYING.reset(token)

        start = self._clock.now()
        self._reconciler.flush()
        elapsed = self._clock.now() - start

        if record:
            # One measurement for the whole batch, attributed to every owner.
            for task in tasks:
                self._estimator.record(task.owner, elapsed)
        return elapsed
