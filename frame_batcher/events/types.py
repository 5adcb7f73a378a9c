"""Scheduler event definitions."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    TASK_SUBMITTED = "TaskSubmitted"
    TASK_BYPASSED = "TaskBypassed"
    TASK_REENTRANT = "TaskReentrant"
    WAKEUP_REQUESTED = "WakeupRequested"
    FRAME_START = "FrameStart"
    BATCH_EXECUTED = "BatchExecuted"
    STARVATION_FALLBACK = "StarvationFallback"
    FRAME_END = "FrameEnd"
    ERROR = "Error"


class BatchEvent(BaseModel):
    """Normalized event envelope for tracing and metrics."""

    model_config = ConfigDict(extra="forbid")

    event_id: str
    seq: int = Field(ge=0)
    correlation_id: str
    time: float
    type: EventType
    frame_id: Optional[int] = None
    owner_id: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)
