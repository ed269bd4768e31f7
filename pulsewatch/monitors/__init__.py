"""Monitor scheduling and health-check engine.

Components:
- Monitor / AlertEvent / MonitorPatch: Entity, transition event, patch body
- HistoryPoint / HistoryLedger: Terminal check results and their bounded log
- MonitorConfig: Pydantic settings for intervals, retries and sweeps
- MonitorRegistry: Sole owner of monitors (registry.py)
- Scheduler / RecoverySweeper: Timer lifecycle and down re-checks
- Prober: Bounded-retry HTTP checks
- MonitorService: Wires everything together (service.py)
- views: Uptime, health, stats and events derived from monitor state

Only the leaf modules are re-exported here; import the registry, scheduler
and service from their modules.
"""

from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.errors import (
    CheckInFlightError,
    MonitorError,
    MonitorNotFoundError,
    MonitorValidationError,
)
from pulsewatch.monitors.history import HistoryLedger, HistoryPoint, is_up
from pulsewatch.monitors.schemas import AlertEvent, Monitor, MonitorPatch, MonitorRecord
from pulsewatch.monitors.views import (
    aggregate_stats,
    health_status,
    recent_events,
    summarize,
    uptime_pct,
)

__all__ = [
    "AlertEvent",
    "CheckInFlightError",
    "HistoryLedger",
    "HistoryPoint",
    "Monitor",
    "MonitorConfig",
    "MonitorError",
    "MonitorNotFoundError",
    "MonitorPatch",
    "MonitorRecord",
    "MonitorValidationError",
    "aggregate_stats",
    "health_status",
    "is_up",
    "recent_events",
    "summarize",
    "uptime_pct",
]
