"""Per-monitor timer lifecycle with single-flight check execution.

Each enabled monitor gets one timer task that triggers an immediate check
and then one check per interval. Every check runs as its own task, so a
slow check never delays its timer: ticks that arrive while a check for the
same monitor is still running are dropped, not queued.

The scheduler holds only ids and task handles. Monitors are resolved
through the ``lookup`` callable on every tick.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pulsewatch.monitors.history import HistoryPoint
from pulsewatch.monitors.schemas import Monitor
from pulsewatch.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

MonitorLookup = Callable[[str], Monitor | None]
CheckRunner = Callable[[str, bool], Awaitable[HistoryPoint | None]]


class Scheduler:
    """Owns timer tasks and in-flight check tasks, keyed by monitor id.

    Args:
        lookup: Resolves a monitor id to the live Monitor (or None).
        runner: Coroutine function running one check for ``(id, forced)``.
        metrics: Optional metrics collector (global one if None).
    """

    def __init__(
        self,
        lookup: MonitorLookup,
        runner: CheckRunner,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._lookup = lookup
        self._runner = runner
        self._metrics = metrics or get_metrics()
        self._timers: dict[str, asyncio.Task] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def scheduled_ids(self) -> list[str]:
        return list(self._timers)

    @property
    def in_flight_ids(self) -> list[str]:
        return list(self._inflight)

    def is_scheduled(self, monitor_id: str) -> bool:
        return monitor_id in self._timers

    def is_in_flight(self, monitor_id: str) -> bool:
        return monitor_id in self._inflight

    def reconcile(self, monitor_id: str) -> None:
        """Bring the timer for one monitor in line with its current state.

        Any existing timer is cancelled first. A new one is armed only if
        the monitor still exists and is enabled, using its current
        interval. An in-flight check is left running.
        """
        self.cancel(monitor_id)

        monitor = self._lookup(monitor_id)
        if monitor is None or not monitor.enabled:
            return

        interval = monitor.interval_ms / 1000
        self._timers[monitor_id] = asyncio.create_task(
            self._run_timer(monitor_id, interval),
            name=f"monitor_timer:{monitor_id}",
        )
        logger.debug("Timer armed for %s every %.3fs", monitor_id, interval)

    def cancel(self, monitor_id: str) -> None:
        """Stop the timer for a monitor. Never cancels an in-flight check."""
        task = self._timers.pop(monitor_id, None)
        if task is not None:
            task.cancel()

    def cancel_all(self) -> None:
        for monitor_id in list(self._timers):
            self.cancel(monitor_id)

    def trigger(self, monitor_id: str, forced: bool = False) -> asyncio.Task | None:
        """Start a check unless one is already running for this monitor.

        Returns:
            The check task, or None if the trigger was dropped or the
            monitor no longer exists.
        """
        if monitor_id in self._inflight:
            source = "forced" if forced else "timer"
            logger.debug("Check for %s still in flight, dropping %s trigger", monitor_id, source)
            self._metrics.record_skipped_tick(source)
            return None

        if self._lookup(monitor_id) is None:
            return None

        task = asyncio.create_task(
            self._execute(monitor_id, forced),
            name=f"monitor_check:{monitor_id}",
        )
        self._inflight[monitor_id] = task
        return task

    async def run_check(self, monitor_id: str, forced: bool = True) -> HistoryPoint | None:
        """Trigger a check and wait for its result.

        Returns None if the check was dropped or failed unexpectedly.
        Cancelling the caller does not cancel the check itself.
        """
        task = self.trigger(monitor_id, forced=forced)
        if task is None:
            return None
        return await asyncio.shield(task)

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight checks; cancel whatever is left after ``timeout``.

        Returns:
            True if every in-flight check finished on its own.
        """
        tasks = list(self._inflight.values())
        if not tasks:
            return True

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning("Cancelling %d checks still running after %ss", len(pending), timeout)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        return not pending

    async def _run_timer(self, monitor_id: str, interval: float) -> None:
        while True:
            monitor = self._lookup(monitor_id)
            if monitor is None or not monitor.enabled:
                break
            self.trigger(monitor_id)
            await asyncio.sleep(interval)

        if self._timers.get(monitor_id) is asyncio.current_task():
            del self._timers[monitor_id]

    async def _execute(self, monitor_id: str, forced: bool) -> HistoryPoint | None:
        try:
            return await self._runner(monitor_id, forced)
        except Exception:
            logger.exception("Check for monitor %s failed unexpectedly", monitor_id)
            self._metrics.record_check_error()
            return None
        finally:
            self._inflight.pop(monitor_id, None)
