"""Periodic forced re-check of monitors that are currently down."""

import asyncio
import logging

from pulsewatch.monitors.history import is_up
from pulsewatch.monitors.registry import MonitorRegistry
from pulsewatch.monitors.scheduler import Scheduler
from pulsewatch.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)


class RecoverySweeper:
    """Triggers forced checks of down monitors on a fixed cadence.

    Checks go through ``Scheduler.trigger`` so they share the
    single-flight guard with the regular timers. A sweep tick does not wait
    for the checks it starts.
    """

    def __init__(
        self,
        registry: MonitorRegistry,
        scheduler: Scheduler,
        interval_seconds: float = 30.0,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._registry = registry
        self._scheduler = scheduler
        self._interval = interval_seconds
        self._metrics = metrics or get_metrics()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def down_monitor_ids(self) -> list[str]:
        """Enabled, already-checked monitors whose last status is not up."""
        return [
            m.id
            for m in self._registry.list()
            if m.enabled and m.checked and not is_up(m.last_status)
        ]

    def sweep(self) -> list[asyncio.Task]:
        """Trigger a forced check for every down monitor.

        Returns:
            Tasks of the checks actually started (in-flight ones are skipped).
        """
        tasks = []
        for monitor_id in self.down_monitor_ids():
            task = self._scheduler.trigger(monitor_id, forced=True)
            if task is not None:
                tasks.append(task)

        if tasks:
            logger.info("Recovery sweep re-checking %d down monitors", len(tasks))
        self._metrics.record_sweep(len(tasks))
        return tasks

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="recovery_sweeper")
        logger.info("Recovery sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Recovery sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.sweep()
