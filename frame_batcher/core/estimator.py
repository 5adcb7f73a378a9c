"""Owner cost estimates and promising-prefix selection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
import weakref

from frame_batcher.model import EstimationRecord, Task

from .queue import PendingQueue


class CostEstimator:
    """Side-table from owner identity to its last measured update time.

    Owners are keyed by identity, never by equality. Owners that support weak
    references drop their record when they are collected; other owners are
    pinned until :meth:`forget` is called.
    """

    def __init__(self) -> None:
        self._records: dict[int, EstimationRecord] = {}
        self._refs: dict[int, weakref.ref] = {}
        self._pinned: dict[int, Any] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, owner: Any) -> bool:
        return self._lookup(owner) is not None

    def record_for(self, owner: Any) -> EstimationRecord:
        record = self._lookup(owner)
        return record if record is not None else EstimationRecord()

    def estimate_for(self, owner: Any) -> float | None:
        return self.record_for(owner).estimated_ms

    def record(self, owner: Any, elapsed_ms: float) -> None:
        record = self._lookup(owner)
        if record is None:
            record = self._track(owner)
        record.estimated_ms = float(elapsed_ms)

    def forget(self, owner: Any) -> None:
        key = id(owner)
        if self._lookup(owner) is None:
            return
        self._records.pop(key, None)
        self._refs.pop(key, None)
        self._pinned.pop(key, None)

    def _lookup(self, owner: Any) -> EstimationRecord | None:
        key = id(owner)
        ref = self._refs.get(key)
        if ref is not None:
            return self._records.get(key) if ref() is owner else None
        if self._pinned.get(key) is owner:
            return self._records.get(key)
        return None

    def _track(self, owner: Any) -> EstimationRecord:
        key = id(owner)
        try:
            self._refs[key] = weakref.ref(owner, lambda _ref, key=key: self._drop(key, _ref))
        except TypeError:
            self._pinned[key] = owner
        record = EstimationRecord()
        self._records[key] = record
        return record

    def _drop(self, key: int, ref: weakref.ref) -> None:
        # The id may already belong to a newer owner.
        if self._refs.get(key) is ref:
            self._refs.pop(key, None)
            self._records.pop(key, None)

    def sort_key(self, task: Task) -> tuple[bool, float]:
        estimate = self.estimate_for(task.owner)
        return (estimate is None, estimate if estimate is not None else 0.0)

    def sorted_tasks(self, tasks: Sequence[Task]) -> list[Task]:
        """Cheapest estimate first, unknown estimates last, arrival order on ties."""
        return sorted(tasks, key=self.sort_key)

    def promising_prefix(self, tasks: Sequence[Task], budget_ms: float) -> list[Task]:
        accepted: list[Task] = []
        total = 0.0
        for task in self.sorted_tasks(tasks):
            estimate = self.estimate_for(task.owner)
            if estimate is None:
                break
            if total + estimate > budget_ms:
                break
            total += estimate
            accepted.append(task)
        return accepted

    def splice_promising(self, queue: PendingQueue, budget_ms: float) -> list[Task]:
        """Remove and return the greedy cheapest-first prefix fitting the budget."""
        accepted = self.promising_prefix(list(queue), budget_ms)
        queue.remove(accepted)
        return accepted
