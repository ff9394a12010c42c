"""Custom exceptions for smite."""

from __future__ import annotations


class SmiteError(Exception):
    """Base exception for all smite errors."""


class ConfigError(SmiteError):
    """Configuration-related errors."""


class SchedulingError(SmiteError):
    """Work-item graph and batch planning errors."""


class WorkItemError(SchedulingError):
    """Invalid work-item document or unknown work-item id."""


class CircularDependencyError(SchedulingError):
    """Raised when remaining work items can never become ready.

    `blocked` holds the ids left unscheduled; `cycle` holds one concrete
    cycle among them when one could be found.
    """

    def __init__(self, blocked: list[str], cycle: list[str] | None = None):
        self.blocked = list(blocked)
        self.cycle = list(cycle or [])
        message = "Unable to resolve dependencies - possible circular dependency"
        if self.cycle:
            message += f": {' -> '.join(self.cycle + self.cycle[:1])}"
        elif self.blocked:
            message += f" among {', '.join(self.blocked)}"
        super().__init__(message)


class BackendError(SmiteError):
    """Search backend errors. Never escapes the search router."""


class BackendUnavailableError(BackendError):
    """Raised when a search backend binary cannot be invoked."""

    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"{backend} not available")


class BackendTimeoutError(BackendError):
    """Raised when a search backend exceeds its time budget."""

    def __init__(self, backend: str, timeout: float):
        self.backend = backend
        self.timeout = timeout
        super().__init__(f"{backend} timeout after {timeout:g}s")
