"""Adaptive frame-budget batching scheduler."""

from frame_batcher.core import CostEstimator, EmptyQueueError, FrameBatchScheduler
from frame_batcher.model import FailurePolicy, FrameReport, FrameState, Task

__all__ = [
    "CostEstimator",
    "EmptyQueueError",
    "FailurePolicy",
    "FrameBatchScheduler",
    "FrameReport",
    "FrameState",
    "Task",
]
