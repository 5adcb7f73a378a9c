"""Scheduler core exports."""

from .clocks import MonotonicClock
from .estimator import CostEstimator
from .executor import BatchExecutor
from .interfaces import IClock, IReconciler, IWakeupSource
from .queue import EmptyQueueError, PendingQueue
from .scheduler import FrameBatchScheduler, describe_owner
from .trigger import FrameTrigger

__all__ = [
    "BatchExecutor",
    "CostEstimator",
    "EmptyQueueError",
    "FrameBatchScheduler",
    "FrameTrigger",
    "IClock",
    "IReconciler",
    "IWakeupSource",
    "MonotonicClock",
    "PendingQueue",
    "describe_owner",
]
