"""Domain checks and their registry."""

from .base import BaseCheck, HealthCheckType, check_aliases
from .registry import CHECKS, build_check, get_check_class, resolve_check_type

__all__ = [
    "BaseCheck",
    "HealthCheckType",
    "check_aliases",
    "CHECKS",
    "build_check",
    "get_check_class",
    "resolve_check_type",
]
