"""Adaptive frame-budget batching scheduler."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Callable

from frame_batcher.bypass import IBypassPolicy, NeverBypass, create_bypass_policy
from frame_batcher.events import BatchEvent, EventBus, EventType
from frame_batcher.metrics.core import BatchMetrics
from frame_batcher.model import (
    DEFAULT_FRAME_BUDGET_MS,
    BatchPhase,
    Completion,
    EnqueueFn,
    FailurePolicy,
    FrameReport,
    FrameState,
    SchedulerSpec,
    Task,
)

from .clocks import MonotonicClock
from .estimator import CostEstimator
from .executor import BatchExecutor
from .interfaces import IClock, IReconciler, IWakeupSource
from .queue import PendingQueue
from .trigger import FrameTrigger


def describe_owner(owner: Any) -> str:
    if isinstance(owner, str):
        return owner
    owner_id = getattr(owner, "owner_id", None) or getattr(owner, "id", None)
    if isinstance(owner_id, str) and owner_id:
        return owner_id
    return f"{type(owner).__name__}@{id(owner):x}"


class FrameBatchScheduler:
    """Group submitted updates into per-wake-up batches that fit a time budget.

    Each wake-up runs, in order:

    1. the promising pass: the cheapest-estimated tasks whose summed estimates
       fit the frame budget, executed as a single batch;
    2. the opportunistic pass: FIFO head tasks executed one by one while budget
       remains, unknown estimates counting as zero, stopping at the first head
       estimated over the remaining budget;
    3. the starvation fallback: when the budget is untouched, one head task is
       forced through regardless of its estimate;
    4. a new wake-up request when backlog remains.
    """

    def __init__(
        self,
        reconciler: IReconciler,
        wakeup_source: IWakeupSource,
        clock: IClock | None = None,
        *,
        frame_budget_ms: float = DEFAULT_FRAME_BUDGET_MS,
        bypass: IBypassPolicy | None = None,
        failure_policy: FailurePolicy | str = FailurePolicy.PROPAGATE,
        estimator: CostEstimator | None = None,
        metrics: list[BatchMetrics] | None = None,
        event_id_mode: str = "deterministic",
        event_id_seed: int | None = None,
    ) -> None:
        if frame_budget_ms <= 0:
            raise ValueError("frame_budget_ms must be > 0")
        self._frame_budget = float(frame_budget_ms)
        self._failure_policy = FailurePolicy(failure_policy)
        self._reconciler = reconciler
        self._clock = clock or MonotonicClock()
        self._bypass = bypass or NeverBypass()
        self._estimator = estimator or CostEstimator()
        self._queue = PendingQueue()
        self._executor = BatchExecutor(reconciler, self._clock, self._estimator)
        self._trigger = FrameTrigger(wakeup_source, self.perform_frame)

        self._metrics = metrics or [BatchMetrics()]
        self._events: list[BatchEvent] = []
        self._event_bus = EventBus(event_id_mode=event_id_mode, event_id_seed=event_id_seed)
        self._event_bus.subscribe(self._events.append)
        for metric in self._metrics:
            self._event_bus.subscribe(metric.consume)

        self._seq = 0
        self._frame_id = 0
        self._running = False
        self._last_report: FrameReport | None = None

    @classmethod
    def from_spec(
        cls,
        spec: SchedulerSpec,
        reconciler: IReconciler,
        wakeup_source: IWakeupSource,
        clock: IClock | None = None,
        **kwargs: Any,
    ) -> "FrameBatchScheduler":
        bypass = kwargs.pop("bypass", None) or create_bypass_policy(spec.bypass.name, spec.bypass.params)
        return cls(
            reconciler,
            wakeup_source,
            clock,
            frame_budget_ms=spec.frame_budget_ms,
            bypass=bypass,
            failure_policy=spec.failure_policy,
            event_id_mode=spec.event_id_mode,
            **kwargs,
        )

    @property
    def frame_budget_ms(self) -> float:
        return self._frame_budget

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._failure_policy

    @property
    def estimator(self) -> CostEstimator:
        return self._estimator

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def pending_tasks(self) -> list[Task]:
        return list(self._queue)

    @property
    def wakeup_pending(self) -> bool:
        return self._trigger.pending

    @property
    def state(self) -> FrameState:
        if self._running:
            return FrameState.RUNNING
        if self._trigger.pending:
            return FrameState.ARMED
        return FrameState.IDLE

    @property
    def events(self) -> list[BatchEvent]:
        return list(self._events)

    @property
    def last_report(self) -> FrameReport | None:
        return self._last_report

    def subscribe(
        self,
        handler: Callable[[BatchEvent], None],
        types: set[EventType] | None = None,
    ) -> None:
        self._event_bus.subscribe(handler, types)

    def metric_report(self) -> dict:
        merged: dict = {}
        for metric in self._metrics:
            merged.update(metric.report())
        return merged

    def estimate_for(self, owner: Any) -> float | None:
        return self._estimator.estimate_for(owner)

    def submit_update(
        self,
        owner: Any,
        enqueue_fn: EnqueueFn | None = None,
        completion: Completion = None,
    ) -> Task:
        """Sole entry point for updates coming from the reactivity runtime."""
        self._seq += 1
        task = Task(
            owner=owner,
            enqueue_fn=enqueue_fn or self._reconciler.enqueue,
            completion=completion,
            seq=self._seq,
        )
        owner_id = describe_owner(owner)

        if self._executor.applying:
            # Flushed together with the batch currently being applied.
            task.apply()
            self._publish(EventType.TASK_REENTRANT, owner_id=owner_id, payload={"seq": task.seq})
            return task

        if self._bypass.is_bypassed(owner):
            self._publish(EventType.TASK_BYPASSED, owner_id=owner_id, payload={"seq": task.seq})
            try:
                elapsed = self._executor.execute([task], record=False)
            except Exception as exc:
                self._publish(
                    EventType.ERROR,
                    owner_id=owner_id,
                    payload={
                        "phase": BatchPhase.BYPASS.value,
                        "seq": task.seq,
                        "error": type(exc).__name__,
                        "message": str(exc),
                        "backlog": len(self._queue),
                    },
                )
                raise
            self._publish(
                EventType.BATCH_EXECUTED,
                owner_id=owner_id,
                payload={
                    "phase": BatchPhase.BYPASS.value,
                    "size": 1,
                    "elapsed_ms": elapsed,
                    "owners": [owner_id],
                },
            )
            return task

        self._queue.append(task)
        self._publish(
            EventType.TASK_SUBMITTED,
            owner_id=owner_id,
            payload={"seq": task.seq, "backlog": len(self._queue)},
        )
        self._request_wakeup()
        return task

    def perform_frame(self) -> FrameReport:
        """Run one wake-up; registered with the wake-up source by the trigger."""
        self._trigger.clear()
        self._frame_id += 1
        report = FrameReport(
            frame_id=self._frame_id,
            budget_ms=self._frame_budget,
            remaining_ms=self._frame_budget,
        )
        self._publish(
            EventType.FRAME_START,
            frame_id=report.frame_id,
            payload={"budget_ms": self._frame_budget, "backlog": len(self._queue)},
        )

        self._running = True
        try:
            self._run_passes(report)
        except Exception as exc:
            self._running = False
            report.backlog = len(self._queue)
            rearm_error: str | None = None
            if self._failure_policy is FailurePolicy.REARM and self._queue:
                try:
                    self._request_wakeup(report.frame_id)
                except Exception as rearm_exc:
                    # The apply/flush failure stays the one that propagates.
                    rearm_error = f"{type(rearm_exc).__name__}: {rearm_exc}"
                report.rearmed = self._trigger.pending
            self._publish(
                EventType.ERROR,
                frame_id=report.frame_id,
                payload={
                    "error": type(exc).__name__,
                    "message": str(exc),
                    "failure_policy": self._failure_policy.value,
                    "backlog": report.backlog,
                    "rearmed": report.rearmed,
                    "rearm_error": rearm_error,
                },
            )
            self._last_report = report
            raise
        self._running = False

        report.backlog = len(self._queue)
        if self._queue:
            self._request_wakeup(report.frame_id)
        report.rearmed = self._trigger.pending
        self._publish(
            EventType.FRAME_END,
            frame_id=report.frame_id,
            payload={
                "remaining_ms": report.remaining_ms,
                "elapsed_ms": report.elapsed_ms,
                "tasks_executed": report.tasks_executed,
                "fallback": report.fallback,
                "backlog": report.backlog,
                "rearmed": report.rearmed,
            },
        )
        self._last_report = report
        return report

    def _run_passes(self, report: FrameReport) -> None:
        promising = self._estimator.splice_promising(self._queue, self._frame_budget)
        if promising:
            self._run_batch(promising, BatchPhase.PROMISING, report)

        while self._queue and report.remaining_ms > 0:
            head = self._queue.peek()
            estimate = self._estimator.estimate_for(head.owner)
            if estimate is not None and estimate > report.remaining_ms:
                break
            self._run_batch([self._queue.take_front()], BatchPhase.OPPORTUNISTIC, report)

        if report.remaining_ms == self._frame_budget and self._queue:
            task = self._queue.take_front()
            report.fallback = True
            self._publish(
                EventType.STARVATION_FALLBACK,
                frame_id=report.frame_id,
                owner_id=describe_owner(task.owner),
                payload={"seq": task.seq, "estimate_ms": self._estimator.estimate_for(task.owner)},
            )
            self._run_batch([task], BatchPhase.FALLBACK, report)

    def _run_batch(self, tasks: Sequence[Task], phase: BatchPhase, report: FrameReport) -> None:
        elapsed = self._executor.execute(tasks)
        report.remaining_ms -= elapsed
        report.tasks_executed += len(tasks)
        report.batches.append((phase, len(tasks), elapsed))
        self._publish(
            EventType.BATCH_EXECUTED,
            frame_id=report.frame_id,
            payload={
                "phase": phase.value,
                "size": len(tasks),
                "elapsed_ms": elapsed,
                "remaining_ms": report.remaining_ms,
                "owners": [describe_owner(task.owner) for task in tasks],
                "seqs": [task.seq for task in tasks],
            },
        )

    def _request_wakeup(self, frame_id: int | None = None) -> None:
        if self._trigger.request():
            self._publish(
                EventType.WAKEUP_REQUESTED,
                frame_id=frame_id,
                payload={"backlog": len(self._queue)},
            )

    def _publish(
        self,
        event_type: EventType,
        *,
        frame_id: int | None = None,
        owner_id: str | None = None,
        payload: dict | None = None,
    ) -> BatchEvent:
        if frame_id is None and self._running:
            frame_id = self._frame_id
        return self._event_bus.publish(
            event_type=event_type,
            time=self._clock.now(),
            frame_id=frame_id,
            owner_id=owner_id,
            payload=payload,
        )
