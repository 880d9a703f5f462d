"""Error taxonomy for the dashboard client."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors surfaced to the dashboard error slot."""


class DecodeError(DashboardError):
    """Raised when an inbound stream message is not a valid sample."""


class StreamConnectionError(DashboardError):
    """Raised when the telemetry stream transport fails."""


class ControlError(DashboardError):
    """Raised when a control API call fails."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.reason = message


class InvalidPathError(DashboardError, KeyError):
    """Raised when a dotted config path does not address a known leaf."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"Unknown configuration path: {path!r}")
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0])
