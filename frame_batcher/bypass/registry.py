"""Bypass policy registry."""

from __future__ import annotations

from collections.abc import Callable

from .base import IBypassPolicy
from .builtins import CallableBypass, NeverBypass, OwnerKindBypass, OwnerTypeBypass


BypassFactory = Callable[[dict], IBypassPolicy]


_REGISTRY: dict[str, BypassFactory] = {
    "never": lambda _params: NeverBypass(),
    "none": lambda _params: NeverBypass(),
    "owner_type": lambda params: OwnerTypeBypass(params=params),
    "owner_kind": lambda params: OwnerKindBypass(params=params),
    "callable": lambda params: CallableBypass(params=params),
}


def register_bypass_policy(name: str, factory: BypassFactory) -> None:
    _REGISTRY[name.strip().lower()] = factory


def create_bypass_policy(name: str = "never", params: dict | None = None) -> IBypassPolicy:
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"unknown bypass policy {name}")
    return _REGISTRY[key](params or {})
