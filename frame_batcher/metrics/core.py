"""Default metrics implementation."""

from __future__ import annotations

from collections import Counter

from frame_batcher.events import BatchEvent, EventType


class BatchMetrics:
    """Aggregate per-frame batching statistics from the event stream."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._frames = 0
        self._overrun_frames = 0
        self._fallback_count = 0
        self._error_count = 0
        self._wakeup_requests = 0
        self._submitted = 0
        self._bypassed = 0
        self._reentrant = 0
        self._batch_sizes: list[int] = []
        self._batch_phases: Counter[str] = Counter()
        self._frame_elapsed: list[float] = []
        self._max_backlog = 0
        self._event_count = 0

    def consume(self, event: BatchEvent) -> None:
        self._event_count += 1
        payload = event.payload

        if event.type == EventType.TASK_SUBMITTED:
            self._submitted += 1
            backlog = payload.get("backlog")
            if isinstance(backlog, int):
                self._max_backlog = max(self._max_backlog, backlog)

        elif event.type == EventType.TASK_BYPASSED:
            self._bypassed += 1

        elif event.type == EventType.TASK_REENTRANT:
            self._reentrant += 1

        elif event.type == EventType.WAKEUP_REQUESTED:
            self._wakeup_requests += 1

        elif event.type == EventType.BATCH_EXECUTED:
            size = payload.get("size")
            phase = payload.get("phase")
            if isinstance(size, int):
                self._batch_sizes.append(size)
            if isinstance(phase, str):
                self._batch_phases[phase] += 1

        elif event.type == EventType.STARVATION_FALLBACK:
            self._fallback_count += 1

        elif event.type == EventType.FRAME_END:
            self._frames += 1
            remaining = payload.get("remaining_ms")
            if isinstance(remaining, (int, float)) and remaining < 0:
                self._overrun_frames += 1
            elapsed = payload.get("elapsed_ms")
            if isinstance(elapsed, (int, float)):
                self._frame_elapsed.append(float(elapsed))

        elif event.type == EventType.ERROR:
            self._error_count += 1

    def report(self) -> dict:
        executed = sum(self._batch_sizes)
        avg_batch = executed / len(self._batch_sizes) if self._batch_sizes else 0.0
        avg_frame = sum(self._frame_elapsed) / len(self._frame_elapsed) if self._frame_elapsed else 0.0
        return {
            "frames": self._frames,
            "overrun_frames": self._overrun_frames,
            "overrun_ratio": self._overrun_frames / max(1, self._frames),
            "fallback_count": self._fallback_count,
            "wakeup_requests": self._wakeup_requests,
            "tasks_submitted": self._submitted,
            "tasks_executed": executed,
            "tasks_bypassed": self._bypassed,
            "tasks_reentrant": self._reentrant,
            "batches": len(self._batch_sizes),
            "batches_by_phase": dict(self._batch_phases),
            "avg_batch_size": avg_batch,
            "avg_frame_time_ms": avg_frame,
            "max_frame_time_ms": max(self._frame_elapsed, default=0.0),
            "max_backlog": self._max_backlog,
            "error_count": self._error_count,
            "event_count": self._event_count,
        }
