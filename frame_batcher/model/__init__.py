"""Model package exports."""

from .runtime import (
    BatchPhase,
    Completion,
    EnqueueFn,
    EstimationRecord,
    FailurePolicy,
    FrameReport,
    FrameState,
    Task,
)
from .spec import (
    DEFAULT_FRAME_BUDGET_MS,
    BypassSpec,
    OwnerSpec,
    SchedulerSpec,
    SimSpec,
    SubmissionSpec,
    WorkloadSpec,
)

__all__ = [
    "BatchPhase",
    "BypassSpec",
    "Completion",
    "DEFAULT_FRAME_BUDGET_MS",
    "EnqueueFn",
    "EstimationRecord",
    "FailurePolicy",
    "FrameReport",
    "FrameState",
    "OwnerSpec",
    "SchedulerSpec",
    "SimSpec",
    "SubmissionSpec",
    "Task",
    "WorkloadSpec",
]
