"""Persistence contract for monitor records.

The engine only needs two operations: load every record once at startup
and save the full record list after mutations and checks. Backends raise
``StoreError`` from ``load`` and return False from ``save`` on failure.
"""

from abc import ABC, abstractmethod

from pulsewatch.monitors.schemas import MonitorRecord


class StoreError(Exception):
    """Raised when a store cannot be read."""


class MonitorStore(ABC):
    """Abstract base for monitor record stores."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend name for logs (e.g. 'file', 'redis')."""

    @abstractmethod
    async def load(self) -> list[MonitorRecord]:
        """Read every persisted record.

        Returns:
            Records in stored order; empty when nothing was saved yet.

        Raises:
            StoreError: If the backend cannot be read.
        """

    @abstractmethod
    async def save(self, records: list[MonitorRecord]) -> bool:
        """Replace the stored records.

        Args:
            records: Full record list.

        Returns:
            True if the write succeeded.
        """

    async def close(self) -> None:
        """Release backend resources."""


def records_from_mapping(data: object) -> list[MonitorRecord]:
    """Normalize a stored payload (list, or id → record mapping) to a list."""
    if data is None:
        return []
    if isinstance(data, dict):
        return [r for r in data.values() if isinstance(r, dict)]
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    raise StoreError(f"Unexpected stored payload type: {type(data).__name__}")


def records_to_mapping(records: list[MonitorRecord]) -> dict[str, MonitorRecord]:
    """Key records by id for document-style backends."""
    return {str(r["id"]): r for r in records}
