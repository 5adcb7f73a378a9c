"""Frame-correlated event bus."""

from __future__ import annotations

import random
import uuid
from typing import Callable

from .types import BatchEvent, EventType


EventHandler = Callable[[BatchEvent], None]

VALID_EVENT_ID_MODES = {"deterministic", "random", "seeded_random"}
SUBMIT_CORRELATION_ID = "submit"


def frame_correlation_id(frame_id: int | None) -> str:
    """Events of one wake-up share a correlation id; events outside any frame share another."""
    if frame_id is None:
        return SUBMIT_CORRELATION_ID
    return f"frame-{frame_id:08d}"


class EventBus:
    """Publish batching events to subscribers in submission order.

    Handlers subscribed with ``types`` only see those event types. A handler
    is registered at most once; subscribing it again replaces its filter.
    """

    def __init__(
        self,
        *,
        event_id_mode: str = "deterministic",
        event_id_seed: int | None = None,
    ) -> None:
        mode = event_id_mode.lower().strip()
        if mode not in VALID_EVENT_ID_MODES:
            raise ValueError(
                f"invalid event_id_mode '{event_id_mode}', expected one of {sorted(VALID_EVENT_ID_MODES)}"
            )
        self._handlers: list[tuple[EventHandler, frozenset[EventType] | None]] = []
        self._seq = 0
        self._event_id_mode = mode
        self._rng = random.Random(event_id_seed)

    @property
    def published(self) -> int:
        return self._seq

    def subscribe(self, handler: EventHandler, types: set[EventType] | None = None) -> None:
        self.unsubscribe(handler)
        self._handlers.append((handler, frozenset(types) if types is not None else None))

    def unsubscribe(self, handler: EventHandler) -> None:
        self._handlers = [entry for entry in self._handlers if entry[0] != handler]

    def _next_event_id(self) -> str:
        if self._event_id_mode == "random":
            return str(uuid.uuid4())
        if self._event_id_mode == "seeded_random":
            return f"{self._rng.getrandbits(128):032x}"
        return f"evt-{self._seq:08d}"

    def publish(
        self,
        *,
        event_type: EventType,
        time: float,
        frame_id: int | None = None,
        owner_id: str | None = None,
        payload: dict | None = None,
        correlation_id: str | None = None,
    ) -> BatchEvent:
        event = BatchEvent(
            event_id=self._next_event_id(),
            seq=self._seq,
            correlation_id=correlation_id or frame_correlation_id(frame_id),
            time=time,
            type=event_type,
            frame_id=frame_id,
            owner_id=owner_id,
            payload=payload or {},
        )
        self._seq += 1
        for handler, types in list(self._handlers):
            if types is None or event.type in types:
                handler(event)
        return event

    def reset(self) -> None:
        self._seq = 0
        self._handlers.clear()
