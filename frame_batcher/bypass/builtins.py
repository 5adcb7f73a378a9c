"""Built-in bypass policies."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Callable

from .base import IBypassPolicy


def _name_set(raw: Any, field: str) -> frozenset[str]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, Iterable):
        raise ValueError(f"bypass.params.{field} must be list of strings")
    names = frozenset(str(item).strip() for item in raw)
    if "" in names:
        raise ValueError(f"bypass.params.{field} contains empty name")
    return names


class NeverBypass(IBypassPolicy):
    """Every update goes through the queue."""

    def is_bypassed(self, owner: Any) -> bool:  # noqa: ARG002
        return False


class OwnerTypeBypass(IBypassPolicy):
    """Bypass owners whose class name is listed.

    Used for runtime bookkeeping owners (top-level callbacks and the like)
    whose cost cannot be estimated per owner.
    """

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        config = params or {}
        self._type_names = _name_set(config.get("types", []), "types")

    def is_bypassed(self, owner: Any) -> bool:
        return type(owner).__name__ in self._type_names


class OwnerKindBypass(IBypassPolicy):
    """Bypass owners whose ``kind`` attribute is listed."""

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        config = params or {}
        self._kinds = _name_set(config.get("kinds", []), "kinds")

    def is_bypassed(self, owner: Any) -> bool:
        kind = getattr(owner, "kind", None)
        return isinstance(kind, str) and kind in self._kinds


class CallableBypass(IBypassPolicy):
    """Adapt a plain predicate."""

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        config = params or {}
        predicate = config.get("predicate")
        if not callable(predicate):
            raise ValueError("bypass policy 'callable' requires params.predicate")
        self._predicate: Callable[[Any], bool] = predicate

    def is_bypassed(self, owner: Any) -> bool:
        return bool(self._predicate(owner))
