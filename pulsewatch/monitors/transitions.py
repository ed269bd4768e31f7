"""Up/down transition detection for terminal check results.

Stateless: the caller captures the up/down state before the probe
overwrites ``last_status`` and hands both sides in here.
"""

from pulsewatch.monitors.history import HistoryPoint
from pulsewatch.monitors.schemas import AlertEvent, Monitor


def detect_transition(
    monitor: Monitor,
    was_up: bool,
    point: HistoryPoint,
) -> AlertEvent | None:
    """Build an AlertEvent if the terminal result changed the state.

    Args:
        monitor: Monitor the point belongs to.
        was_up: Classification of the status before this check.
        point: Terminal result of this check.

    Returns:
        AlertEvent when ``was_up != point.up``, otherwise None.
    """
    if was_up == point.up:
        return None

    return AlertEvent(
        monitor_id=monitor.id,
        monitor_name=monitor.name,
        url=monitor.url,
        timestamp=point.t,
        previous_up=was_up,
        now_up=point.up,
        status=point.status,
        latency_ms=point.ms,
        error=point.error,
        forced=point.forced,
    )
