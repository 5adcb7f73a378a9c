"""I/O exports."""

from .loader import ConfigError, ConfigLoader, ValidationIssue
from .schema import CONFIG_SCHEMA

__all__ = [
    "CONFIG_SCHEMA",
    "ConfigError",
    "ConfigLoader",
    "ValidationIssue",
]
