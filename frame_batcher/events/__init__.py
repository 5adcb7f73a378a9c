"""Event exports."""

from .bus import VALID_EVENT_ID_MODES, EventBus, EventHandler, frame_correlation_id
from .types import BatchEvent, EventType

__all__ = [
    "BatchEvent",
    "EventBus",
    "EventHandler",
    "EventType",
    "VALID_EVENT_ID_MODES",
    "frame_correlation_id",
]
