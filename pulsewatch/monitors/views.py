"""Derived read-only views over monitor state.

Pure functions: nothing here mutates a monitor or is persisted.
"""

from collections.abc import Iterable
from typing import Any, Literal

from pulsewatch.monitors.history import HistoryPoint, is_up
from pulsewatch.monitors.schemas import Monitor

HealthStatus = Literal["unknown", "healthy", "unhealthy", "critical"]


def uptime_pct(history: Iterable[HistoryPoint]) -> float:
    """Share of up points as a percentage with one decimal, 0 when empty."""
    total = 0
    up = 0
    for point in history:
        total += 1
        if point.up:
            up += 1
    if total == 0:
        return 0
    return round(up / total * 1000) / 10


def health_status(monitor: Monitor, critical_threshold: int = 2) -> HealthStatus:
    """Classify a monitor from its last terminal result.

    - unknown: never checked
    - healthy: last status in [200, 400)
    - critical: more than ``critical_threshold`` consecutive failures
    - unhealthy: otherwise
    """
    if not monitor.checked:
        return "unknown"
    if is_up(monitor.last_status):
        return "healthy"
    if monitor.consecutive_failures > critical_threshold:
        return "critical"
    return "unhealthy"


def summarize(monitor: Monitor, critical_threshold: int = 2) -> dict[str, Any]:
    """Summary row for list views."""
    return {
        "id": monitor.id,
        "name": monitor.name,
        "url": monitor.url,
        "interval_ms": monitor.interval_ms,
        "enabled": monitor.enabled,
        "last_status": monitor.last_status,
        "last_latency": monitor.last_latency,
        "last_checked": monitor.last_checked,
        "last_error": monitor.last_error,
        "consecutive_failures": monitor.consecutive_failures,
        "retry_count": monitor.retry_count,
        "uptime_pct": uptime_pct(monitor.history),
        "health": health_status(monitor, critical_threshold),
    }


def aggregate_stats(
    monitors: Iterable[Monitor],
    critical_threshold: int = 2,
) -> dict[str, Any]:
    """Registry-wide counters.

    ``overall_uptime`` pools the history points of every monitor.
    """
    monitors = list(monitors)
    total = len(monitors)
    up = sum(1 for m in monitors if is_up(m.last_status))
    enabled = sum(1 for m in monitors if m.enabled)
    critical = sum(
        1 for m in monitors if health_status(m, critical_threshold) == "critical"
    )
    pooled = [p for m in monitors for p in m.history]

    return {
        "total": total,
        "up": up,
        "down": total - up,
        "enabled": enabled,
        "disabled": total - enabled,
        "critical": critical,
        "overall_uptime": uptime_pct(pooled),
    }


def recent_events(monitors: Iterable[Monitor], limit: int = 50) -> list[dict[str, Any]]:
    """Noteworthy history points across all monitors, newest first.

    A point is noteworthy when it was forced, needed retries, or carries
    an error.
    """
    events: list[dict[str, Any]] = []
    for monitor in monitors:
        for point in monitor.history:
            if not (point.forced or point.retried or point.error):
                continue
            events.append({
                "monitor_id": monitor.id,
                "monitor_name": monitor.name,
                "url": monitor.url,
                **point.to_dict(),
            })

    events.sort(key=lambda e: e["t"], reverse=True)
    return events[:max(limit, 0)]
