"""Simulation harness exports."""

from .clock import VirtualClock
from .frames import DisplayRefreshSource, ManualFrameSource
from .reconciler import SimOwner, SimulatedReconciler, SimulatedUpdateError
from .runner import SimulationResult, WorkloadRunner

__all__ = [
    "DisplayRefreshSource",
    "ManualFrameSource",
    "SimOwner",
    "SimulatedReconciler",
    "SimulatedUpdateError",
    "SimulationResult",
    "VirtualClock",
    "WorkloadRunner",
]
