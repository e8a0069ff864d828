"""
coopyield error hierarchy.

Hierarchy:
    CoopYieldError
    ├── ConfigurationError   raised once, at construction
    └── CancellationError    raised by every check() after abort
"""

from __future__ import annotations

from typing import Any, Optional


class CoopYieldError(Exception):
    """Base class for all coopyield exceptions."""


class ConfigurationError(CoopYieldError, ValueError):
    """Options failed validation; no yielder was created."""

    def __init__(self, option: str, value: Any, message: str = "") -> None:
        self.option = option
        self.value = value
        super().__init__(message or f"Invalid value for '{option}': {value!r}")


class CancellationError(CoopYieldError):
    """The cancellation signal was aborted; the loop must stop."""

    def __init__(self, reason: Optional[Any] = None) -> None:
        self.reason = reason
        super().__init__("aborted" if reason is None else str(reason))
