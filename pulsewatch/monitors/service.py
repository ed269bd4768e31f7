"""
Monitor service - wires the engine together and serves the API.

Owns the registry, scheduler, prober, alert dispatcher, recovery sweeper
and store writer, and runs the per-check pipeline:

1. Capture the monitor's up/down state
2. Probe (retrying) and record the terminal result
3. Detect an up/down transition and dispatch an alert
4. Persist a snapshot in the background
"""

import asyncio
from typing import Any

import structlog

from pulsewatch.alerts.dispatcher import AlertDispatcher, build_dispatcher
from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.errors import (
    CheckInFlightError,
    MonitorError,
    MonitorNotFoundError,
)
from pulsewatch.monitors.history import HistoryPoint
from pulsewatch.monitors.prober import Prober
from pulsewatch.monitors.registry import MonitorRegistry
from pulsewatch.monitors.scheduler import Scheduler
from pulsewatch.monitors.schemas import MonitorPatch
from pulsewatch.monitors.sweeper import RecoverySweeper
from pulsewatch.monitors.transitions import detect_transition
from pulsewatch.monitors.views import (
    aggregate_stats,
    recent_events,
    summarize,
)
from pulsewatch.observability.metrics import MetricsCollector, get_metrics
from pulsewatch.storage.base import MonitorStore, StoreError
from pulsewatch.storage.writer import StoreWriter

logger = structlog.get_logger(__name__)


class MonitorService:
    """
    Long-running monitoring engine.

    Usage:
        service = MonitorService(store=JsonFileStore("monitors.json"))
        await service.start()
        ...
        await service.stop()
    """

    def __init__(
        self,
        store: MonitorStore,
        config: MonitorConfig | None = None,
        prober: Prober | None = None,
        dispatcher: AlertDispatcher | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the service.

        Args:
            store: Persistence backend for monitor records
            config: Engine configuration
            prober: HTTP prober (created from config if None)
            dispatcher: Alert dispatcher (built from NotificationConfig if None)
            metrics: Metrics collector (global one if None)
        """
        self._config = config or MonitorConfig()
        self._metrics = metrics or get_metrics()
        self._store = store

        self.registry = MonitorRegistry(self._config)
        self._writer = StoreWriter(store, self.registry.snapshot, metrics=self._metrics)
        self.registry.writer = self._writer

        self._prober = prober or Prober(self._config, metrics=self._metrics)
        self._dispatcher = dispatcher or build_dispatcher(metrics=self._metrics)

        self.scheduler = Scheduler(self.registry.lookup, self._run_check, metrics=self._metrics)
        self.registry.scheduler = self.scheduler

        self.sweeper = RecoverySweeper(
            self.registry,
            self.scheduler,
            interval_seconds=self._config.sweep_interval_seconds,
            metrics=self._metrics,
        )
        self._running = False

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def store(self) -> MonitorStore:
        return self._store

    @property
    def dispatcher(self) -> AlertDispatcher:
        return self._dispatcher

    @property
    def running(self) -> bool:
        return self._running

    # ── Lifecycle ────────────────────────────────────────────

    async def start(self) -> None:
        """Load persisted monitors, arm their timers and start the sweeper.

        An unreadable store is logged and the engine starts empty.
        """
        try:
            records = await self._store.load()
        except StoreError as e:
            logger.error("Failed to load monitors, starting empty", store=self._store.name, error=str(e))
            records = []

        self.registry.load(records)
        for monitor in self.registry.list():
            self.scheduler.reconcile(monitor.id)

        self.sweeper.start()
        self._running = True
        self._update_gauges()

        logger.info(
            "Monitor service started",
            monitors=len(self.registry),
            scheduled=len(self.scheduler.scheduled_ids),
            store=self._store.name,
        )

    async def stop(self) -> None:
        """Stop timers, let in-flight checks finish, then flush and close the store."""
        logger.info("Stopping monitor service")
        self._running = False

        self.scheduler.cancel_all()
        await self.sweeper.stop()

        drained = await self.scheduler.drain(self._config.shutdown_grace_seconds)
        if not drained:
            logger.warning("Shutdown grace period elapsed with checks still running")

        saved = await self._writer.flush()
        await self._store.close()
        logger.info("Monitor service stopped", final_save=saved)

    # ── Check pipeline ───────────────────────────────────────

    async def _run_check(self, monitor_id: str, forced: bool) -> HistoryPoint | None:
        monitor = self.registry.lookup(monitor_id)
        if monitor is None:
            return None

        was_up = monitor.is_up
        point = await self._prober.probe(monitor, forced=forced)

        # Deleted while the probe was running
        if self.registry.lookup(monitor_id) is not monitor:
            logger.debug("Discarding result for deleted monitor", monitor_id=monitor_id)
            return point

        event = detect_transition(monitor, was_up, point)
        if event is not None:
            logger.info(
                "Monitor state changed",
                monitor_id=monitor_id,
                kind=event.kind,
                status=point.status,
                forced=forced,
            )
            await self._dispatcher.dispatch(event)

        self.registry.request_save()
        return point

    # ── Queries ──────────────────────────────────────────────

    def list_summaries(self) -> list[dict[str, Any]]:
        threshold = self._config.critical_failure_threshold
        return [summarize(m, threshold) for m in self.registry.list()]

    def get_detail(self, monitor_id: str, limit: int | None = None) -> dict[str, Any]:
        """Summary of one monitor plus its newest history points.

        Raises:
            MonitorNotFoundError: If the id is unknown.
        """
        monitor = self.registry.get(monitor_id)
        limit = limit or self._config.detail_history_limit
        limit = min(max(limit, 1), self._config.history_cap)

        detail = summarize(monitor, self._config.critical_failure_threshold)
        detail["history"] = [p.to_dict() for p in monitor.history.tail(limit)]
        return detail

    def stats(self) -> dict[str, Any]:
        return aggregate_stats(self.registry.list(), self._config.critical_failure_threshold)

    def recent_events(self, limit: int | None = None) -> list[dict[str, Any]]:
        return recent_events(self.registry.list(), limit or self._config.events_limit)

    # ── Commands ─────────────────────────────────────────────

    async def create(
        self,
        url: Any,
        name: Any = None,
        interval_ms: int | None = None,
    ) -> dict[str, Any]:
        monitor = await self.registry.create(url, name=name, interval_ms=interval_ms)
        self._update_gauges()
        return summarize(monitor, self._config.critical_failure_threshold)

    async def bulk_create(
        self,
        urls: list[Any],
        names: list[Any] | None = None,
        interval_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        monitors = await self.registry.bulk_create(urls, names=names, interval_ms=interval_ms)
        self._update_gauges()
        threshold = self._config.critical_failure_threshold
        return [summarize(m, threshold) for m in monitors]

    async def update(self, monitor_id: str, patch: MonitorPatch) -> dict[str, Any]:
        monitor = await self.registry.update(monitor_id, patch)
        self._update_gauges()
        return summarize(monitor, self._config.critical_failure_threshold)

    async def delete(self, monitor_id: str) -> None:
        await self.registry.delete(monitor_id)
        self._update_gauges()

    async def reset_stats(self, monitor_id: str) -> dict[str, Any]:
        monitor = await self.registry.reset_stats(monitor_id)
        return summarize(monitor, self._config.critical_failure_threshold)

    async def force_check(self, monitor_id: str) -> HistoryPoint:
        """Run a forced check now and return its terminal result.

        Raises:
            MonitorNotFoundError: If the id is unknown.
            CheckInFlightError: If a check for the monitor is already running.
            MonitorError: If the check failed unexpectedly.
        """
        self.registry.get(monitor_id)
        if self.scheduler.is_in_flight(monitor_id):
            raise CheckInFlightError(monitor_id)

        point = await self.scheduler.run_check(monitor_id, forced=True)
        if point is None:
            if self.registry.lookup(monitor_id) is None:
                raise MonitorNotFoundError(monitor_id)
            raise MonitorError(f"Check for monitor {monitor_id} failed")
        return point

    async def force_check_down(self) -> list[str]:
        """Force-check every down monitor and wait for the results.

        Returns:
            Ids of the monitors that were down when the sweep started.
        """
        monitor_ids = self.sweeper.down_monitor_ids()
        tasks = self.sweeper.sweep()
        if tasks:
            await asyncio.gather(*tasks)
        logger.info("Forced check of down monitors", down=len(monitor_ids), started=len(tasks))
        return monitor_ids

    async def sync(self) -> bool:
        """Write the full registry to the store and wait for the result."""
        ok = await self._writer.flush()
        logger.info("Manual sync", ok=ok, monitors=len(self.registry))
        return ok

    def _update_gauges(self) -> None:
        enabled = sum(1 for m in self.registry.list() if m.enabled)
        self._metrics.set_monitor_counts(enabled=enabled, disabled=len(self.registry) - enabled)
