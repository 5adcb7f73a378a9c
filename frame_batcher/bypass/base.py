"""Bypass predicate abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IBypassPolicy(ABC):
    """Decide which submissions skip queueing and estimation."""

    @abstractmethod
    def is_bypassed(self, owner: Any) -> bool:
        """Return True when the owner's update must run immediately."""
