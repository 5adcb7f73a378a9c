"""SimPy-backed workload replay against a frame batching scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field

import simpy

from frame_batcher.core import FrameBatchScheduler
from frame_batcher.events import BatchEvent
from frame_batcher.model import SubmissionSpec, WorkloadSpec

from .clock import VirtualClock
from .frames import DisplayRefreshSource
from .reconciler import SimOwner, SimulatedReconciler


@dataclass(slots=True)
class SimulationResult:
    events: list[BatchEvent]
    metrics: dict
    ticks: int
    dropped_ticks: int
    completed: int
    backlog: int
    errors: list[str] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            **self.metrics,
            "ticks": self.ticks,
            "dropped_ticks": self.dropped_ticks,
            "completed": self.completed,
            "backlog": self.backlog,
            "sim_errors": len(self.errors),
        }


class WorkloadRunner:
    """Replay submissions of a workload spec on a simulated display loop."""

    def __init__(self, spec: WorkloadSpec) -> None:
        if spec.sim is None:
            raise ValueError("workload spec has no sim section")
        self._spec = spec
        self._sim = spec.sim
        self._owners = {owner.id: SimOwner.from_spec(owner) for owner in spec.owners}

    def run(self, until: float | None = None) -> SimulationResult:
        horizon = until if until is not None else self._sim.duration_ms
        if horizon <= 0:
            raise ValueError("simulation horizon must be > 0")

        env = simpy.Environment()
        clock = VirtualClock()
        reconciler = SimulatedReconciler(clock, seed=self._sim.seed)
        display = DisplayRefreshSource(env, clock, self._sim.refresh_interval_ms)
        scheduler = FrameBatchScheduler.from_spec(
            self._spec.scheduler,
            reconciler,
            display,
            clock,
            event_id_seed=self._sim.seed,
        )
        submit_failures: list[tuple[float, Exception]] = []

        env.process(self._replay(env, clock, scheduler, self._spec.submissions, submit_failures))
        env.run(until=horizon)

        failures = [(at, "wake-up", exc) for at, exc in display.errors]
        failures += [(at, "submission", exc) for at, exc in submit_failures]
        failures.sort(key=lambda item: item[0])

        return SimulationResult(
            events=scheduler.events,
            metrics=scheduler.metric_report(),
            ticks=display.ticks,
            dropped_ticks=display.dropped_ticks,
            completed=reconciler.completed,
            backlog=scheduler.pending_count,
            errors=[f"{source} failed at {at:.3f}ms {type(exc).__name__}: {exc}" for at, source, exc in failures],
        )

    def _replay(
        self,
        env: simpy.Environment,
        clock: VirtualClock,
        scheduler: FrameBatchScheduler,
        submissions: list[SubmissionSpec],
        failures: list[tuple[float, Exception]],
    ):
        for submission in sorted(submissions, key=lambda item: item.at_ms):
            delay = submission.at_ms - env.now
            if delay > 0:
                yield env.timeout(delay)
            clock.sync(env.now)
            owner = self._owners[submission.owner]
            for _ in range(submission.count):
                try:
                    scheduler.submit_update(owner)
                except Exception as exc:  # bypassed updates flush on the submitting call
                    failures.append((env.now, exc))
