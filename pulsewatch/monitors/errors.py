"""Exceptions raised by the monitor registry and scheduler."""


class MonitorError(Exception):
    """Base exception for monitor operations."""


class MonitorValidationError(MonitorError, ValueError):
    """Raised when a create or patch request carries invalid input."""


class MonitorNotFoundError(MonitorError, KeyError):
    """Raised when no monitor exists for the given id."""

    def __init__(self, monitor_id: str) -> None:
        super().__init__(monitor_id)
        self.monitor_id = monitor_id

    def __str__(self) -> str:
        return f"Monitor {self.monitor_id!r} not found"


class CheckInFlightError(MonitorError):
    """Raised when a forced check is requested while one is already running."""

    def __init__(self, monitor_id: str) -> None:
        super().__init__(f"A check for monitor {monitor_id!r} is already in flight")
        self.monitor_id = monitor_id
