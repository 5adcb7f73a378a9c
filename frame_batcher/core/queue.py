"""Arrival-ordered queue of pending tasks."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from frame_batcher.model import Task


class EmptyQueueError(LookupError):
    """Raised when taking from an empty pending queue."""


class PendingQueue:
    """FIFO of tasks waiting for a wake-up."""

    def __init__(self) -> None:
        self._tasks: deque[Task] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __bool__(self) -> bool:
        return bool(self._tasks)

    def append(self, task: Task) -> None:
        self._tasks.append(task)

    def peek(self) -> Task:
        if not self._tasks:
            raise EmptyQueueError("pending queue is empty")
        return self._tasks[0]

    def take_front(self) -> Task:
        if not self._tasks:
            raise EmptyQueueError("pending queue is empty")
        return self._tasks.popleft()

    def remove(self, tasks: Iterable[Task]) -> None:
        """Drop the given tasks, keeping the arrival order of the rest."""
        selected = {id(task) for task in tasks}
        if not selected:
            return
        kept = [task for task in self._tasks if id(task) not in selected]
        if len(self._tasks) - len(kept) != len(selected):
            raise ValueError("cannot remove tasks that are not pending")
        self._tasks = deque(kept)
