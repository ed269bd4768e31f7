"""Background, coalescing writer for the monitor store.

``request_save()`` never blocks: it marks the registry dirty and makes sure
one background task is draining. Requests arriving while a write runs are
folded into a single follow-up write of the latest snapshot.
"""

import asyncio
import logging
from collections.abc import Callable

from pulsewatch.monitors.schemas import MonitorRecord
from pulsewatch.observability.metrics import MetricsCollector, get_metrics
from pulsewatch.storage.base import MonitorStore

logger = logging.getLogger(__name__)


class StoreWriter:
    """Fire-and-forget persistence of registry snapshots.

    Args:
        store: Target store.
        snapshot: Callable returning the current full record list.
        metrics: Optional metrics collector (global one if None).
    """

    def __init__(
        self,
        store: MonitorStore,
        snapshot: Callable[[], list[MonitorRecord]],
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._snapshot = snapshot
        self._metrics = metrics or get_metrics()
        self._dirty = False
        self._task: asyncio.Task | None = None
        # One save at a time; flush() and the drain task may overlap
        self._write_lock = asyncio.Lock()

    @property
    def store(self) -> MonitorStore:
        return self._store

    @property
    def pending(self) -> bool:
        """Whether a write is queued or running."""
        return self._dirty or (self._task is not None and not self._task.done())

    def request_save(self) -> None:
        """Schedule a write of the current snapshot without waiting for it."""
        self._dirty = True
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drain(), name="store_writer")

    async def flush(self) -> bool:
        """Wait for any running write, then write the latest snapshot once more."""
        if self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)
        self._dirty = False
        return await self._write()

    async def _drain(self) -> None:
        while self._dirty:
            self._dirty = False
            await self._write()

    async def _write(self) -> bool:
        async with self._write_lock:
            records = self._snapshot()
            try:
                ok = await self._store.save(records)
            except Exception as e:
                logger.error("Store %s save raised: %s", self._store.name, e)
                ok = False

        self._metrics.record_store_write(ok)
        if not ok:
            logger.error(
                "Failed to persist %d monitors to %s", len(records), self._store.name,
            )
        return ok
