"""Bypass policy exports."""

from .base import IBypassPolicy
from .builtins import CallableBypass, NeverBypass, OwnerKindBypass, OwnerTypeBypass
from .registry import create_bypass_policy, register_bypass_policy

__all__ = [
    "CallableBypass",
    "IBypassPolicy",
    "NeverBypass",
    "OwnerKindBypass",
    "OwnerTypeBypass",
    "create_bypass_policy",
    "register_bypass_policy",
]
