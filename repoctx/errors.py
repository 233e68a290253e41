"""Exceptions raised by context loading.

Only ConfigurationError, UnknownStrategyError, and FatalIOError reach the
caller. SkippableIOError is raised by the file system adapter and caught
by strategies, which log it and omit the entry.
"""

from __future__ import annotations


class ContextError(Exception):
    """Base class for all repoctx errors."""


class ConfigurationError(ContextError, ValueError):
    """Loading options are unusable for the requested strategy."""


class UnknownStrategyError(ContextError, KeyError):
    """No loading strategy is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown loading strategy: {name}")

    def __str__(self) -> str:
        return self.args[0]


class SkippableIOError(ContextError, OSError):
    """Read or stat failure on a single file or directory."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class FatalIOError(ContextError, OSError):
    """The root path itself cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read root path {path}: {reason}")

    def __str__(self) -> str:
        return f"Cannot read root path {self.path}: {self.reason}"
