"""Monitor registry: sole owner of Monitor entities.

Validates and normalizes create/patch input, keeps monitors in insertion
order, and after every mutation asks the scheduler to reconcile the
affected id and the store writer to persist a snapshot. Persistence is
fire-and-forget: a failed write is logged by the writer and never rolls
back the in-memory change.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.errors import MonitorNotFoundError, MonitorValidationError
from pulsewatch.monitors.history import HistoryLedger
from pulsewatch.monitors.schemas import (
    Monitor,
    MonitorPatch,
    MonitorRecord,
    new_monitor_id,
)

if TYPE_CHECKING:
    from pulsewatch.monitors.scheduler import Scheduler
    from pulsewatch.storage.writer import StoreWriter

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(url: Any) -> str:
    """Trim a URL and make sure it carries an http(s) scheme.

    Raises:
        MonitorValidationError: If the URL is missing, not a string, or blank.
    """
    if not isinstance(url, str) or not url.strip():
        raise MonitorValidationError("url is required")
    url = url.strip()
    if not _SCHEME_RE.match(url):
        url = "http://" + url
    return url


def normalize_name(name: Any) -> str | None:
    """Trim a display name; blank or missing names become None."""
    if not isinstance(name, str):
        return None
    return name.strip() or None


class MonitorRegistry:
    """In-memory map of monitors keyed by id.

    Args:
        config: Engine configuration (interval floor/default, history cap).
        writer: Store writer notified after every mutation.
        scheduler: Scheduler reconciled after create/update/delete.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        writer: "StoreWriter | None" = None,
        scheduler: "Scheduler | None" = None,
    ) -> None:
        self._config = config or MonitorConfig()
        self._monitors: dict[str, Monitor] = {}
        self.writer = writer
        self.scheduler = scheduler

    # ── Reads ────────────────────────────────────────────────

    def lookup(self, monitor_id: str) -> Monitor | None:
        """Monitor for an id, or None. Used by the scheduler."""
        return self._monitors.get(monitor_id)

    def get(self, monitor_id: str) -> Monitor:
        monitor = self._monitors.get(monitor_id)
        if monitor is None:
            raise MonitorNotFoundError(monitor_id)
        return monitor

    def list(self) -> list[Monitor]:
        return list(self._monitors.values())

    def __len__(self) -> int:
        return len(self._monitors)

    def __contains__(self, monitor_id: object) -> bool:
        return monitor_id in self._monitors

    # ── Mutations ────────────────────────────────────────────

    async def create(
        self,
        url: Any,
        name: Any = None,
        interval_ms: int | None = None,
    ) -> Monitor:
        """Register a new enabled monitor and start checking it.

        Raises:
            MonitorValidationError: If the URL is missing or blank.
        """
        monitor = self._build(url, name, interval_ms)
        self._monitors[monitor.id] = monitor
        logger.info(
            "Monitor created: id=%s url=%s interval_ms=%d",
            monitor.id, monitor.url, monitor.interval_ms,
        )
        self._after_mutation([monitor.id])
        return monitor

    async def bulk_create(
        self,
        urls: Sequence[Any],
        names: Sequence[Any] | None = None,
        interval_ms: int | None = None,
    ) -> list[Monitor]:
        """Register one monitor per usable URL.

        Entries that are not strings or are blank are skipped. Names pair
        with URLs by position.
        """
        names = list(names or [])
        created: list[Monitor] = []

        for i, url in enumerate(urls):
            try:
                monitor = self._build(url, names[i] if i < len(names) else None, interval_ms)
            except MonitorValidationError:
                logger.debug("Skipping unusable bulk entry %d: %r", i, url)
                continue
            self._monitors[monitor.id] = monitor
            created.append(monitor)

        logger.info("Bulk created %d of %d monitors", len(created), len(urls))
        if created:
            self._after_mutation([m.id for m in created])
        return created

    async def update(self, monitor_id: str, patch: MonitorPatch) -> Monitor:
        """Apply an explicit patch and re-arm the monitor's timer.

        Raises:
            MonitorNotFoundError: If the id is unknown.
            MonitorValidationError: If a provided URL is blank.
        """
        monitor = self.get(monitor_id)

        # Validate before touching anything so a bad patch changes nothing
        url = normalize_url(patch.url) if patch.provided("url") else None

        async with monitor.lock:
            if patch.provided("name"):
                monitor.name = normalize_name(patch.name)
            if url is not None:
                monitor.url = url
            if patch.provided("interval_ms") and patch.interval_ms is not None:
                monitor.interval_ms = self._config.clamp_interval(patch.interval_ms)
            if patch.provided("enabled") and patch.enabled is not None:
                monitor.enabled = patch.enabled

        logger.info(
            "Monitor updated: id=%s fields=%s",
            monitor_id, sorted(patch.model_fields_set),
        )
        self._after_mutation([monitor_id])
        return monitor

    async def delete(self, monitor_id: str) -> None:
        """Remove a monitor and cancel its timer.

        Raises:
            MonitorNotFoundError: If the id is unknown.
        """
        if monitor_id not in self._monitors:
            raise MonitorNotFoundError(monitor_id)
        del self._monitors[monitor_id]
        logger.info("Monitor deleted: id=%s", monitor_id)
        self._after_mutation([monitor_id])

    async def reset_stats(self, monitor_id: str) -> Monitor:
        """Clear a monitor's history and counters, keeping its schedule.

        Raises:
            MonitorNotFoundError: If the id is unknown.
        """
        monitor = self.get(monitor_id)
        async with monitor.lock:
            monitor.reset_stats()
        logger.info("Monitor statistics reset: id=%s", monitor_id)
        self._after_mutation([monitor_id], reconcile=False)
        return monitor

    # ── Persistence ──────────────────────────────────────────

    def load(self, records: Iterable[MonitorRecord]) -> int:
        """Populate the registry from persisted records.

        Records without a usable URL are skipped. Intervals that are not
        numeric fall back to the default; short ones are clamped.

        Returns:
            Number of monitors loaded.
        """
        loaded = 0
        for record in records:
            if not isinstance(record, dict):
                continue
            try:
                url = normalize_url(record.get("url"))
            except MonitorValidationError:
                logger.warning("Skipping stored monitor without url: %r", record.get("id"))
                continue

            monitor = Monitor.from_record(
                {**record, "url": url},
                interval_ms=self._config.clamp_interval(_parse_interval(record.get("intervalMs"))),
                history_cap=self._config.history_cap,
            )
            self._monitors[monitor.id] = monitor
            loaded += 1

        logger.info("Registry loaded %d monitors", loaded)
        return loaded

    def snapshot(self) -> list[MonitorRecord]:
        """Current records in the persisted shape."""
        return [m.to_record() for m in self._monitors.values()]

    def request_save(self) -> None:
        if self.writer is not None:
            self.writer.request_save()

    # ── Internals ────────────────────────────────────────────

    def _build(self, url: Any, name: Any, interval_ms: int | None) -> Monitor:
        monitor_id = new_monitor_id()
        while monitor_id in self._monitors:
            monitor_id = new_monitor_id()

        return Monitor(
            id=monitor_id,
            url=normalize_url(url),
            name=normalize_name(name),
            interval_ms=self._config.clamp_interval(interval_ms),
            enabled=True,
            history=HistoryLedger(cap=self._config.history_cap),
        )

    def _after_mutation(self, monitor_ids: list[str], reconcile: bool = True) -> None:
        if reconcile and self.scheduler is not None:
            for monitor_id in monitor_ids:
                self.scheduler.reconcile(monitor_id)
        self.request_save()


def _parse_interval(value: Any) -> int | None:
    """Interval from a stored record, None when missing or not numeric."""
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
