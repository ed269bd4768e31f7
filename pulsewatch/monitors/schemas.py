"""Schema definitions for monitors, transition events and patch requests.

``Monitor`` is the in-memory entity owned by the registry. It maps 1:1 to
the persisted ``MonitorRecord`` dictionary (camelCase keys, kept compatible
with existing ``monitors.json`` files). ``AlertEvent`` is derived on an
up/down transition and never persisted.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pulsewatch.monitors.history import (
    DEFAULT_HISTORY_CAP,
    HistoryLedger,
    HistoryPoint,
    is_up,
)

MonitorRecord = dict[str, Any]


def new_monitor_id() -> str:
    """Short opaque identifier for a new monitor."""
    return uuid.uuid4().hex[:8]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass
class Monitor:
    """One configured HTTP target under periodic observation.

    Attributes:
        id: Stable opaque identifier.
        url: Target URL, always with an explicit http(s) scheme.
        name: Optional display name.
        interval_ms: Check cadence, never below the configured floor.
        enabled: Whether the scheduler keeps a timer for this monitor.
        last_status: Status of the last terminal attempt (0 = transport failure).
        last_latency: Latency of the last terminal attempt in ms.
        last_checked: Epoch ms of the last terminal attempt.
        last_error: Error text of the last terminal attempt.
        consecutive_failures: Down terminal results since the last up one.
        retry_count: Probes whose terminal attempt was a transport failure.
        history: Bounded ledger of terminal results.
    """

    id: str
    url: str
    name: str | None = None
    interval_ms: int = 5000
    enabled: bool = True
    last_status: int | None = None
    last_latency: int | None = None
    last_checked: int | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    retry_count: int = 0
    history: HistoryLedger = field(default_factory=HistoryLedger)
    lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, repr=False, compare=False
    )

    @property
    def display_name(self) -> str:
        return self.name or self.url

    @property
    def is_up(self) -> bool:
        return is_up(self.last_status)

    @property
    def checked(self) -> bool:
        return self.last_checked is not None

    def reset_stats(self) -> None:
        """Forget all observed state, keeping the configuration."""
        self.history.clear()
        self.last_status = None
        self.last_latency = None
        self.last_checked = None
        self.last_error = None
        self.consecutive_failures = 0
        self.retry_count = 0

    def to_record(self) -> MonitorRecord:
        """Convert to the persisted record shape."""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "intervalMs": self.interval_ms,
            "history": self.history.to_list(),
            "lastStatus": self.last_status,
            "lastLatency": self.last_latency,
            "lastChecked": self.last_checked,
            "enabled": self.enabled,
            "retryCount": self.retry_count,
            "lastError": self.last_error,
            "consecutiveFailures": self.consecutive_failures,
        }

    @classmethod
    def from_record(
        cls,
        data: MonitorRecord,
        interval_ms: int,
        history_cap: int = DEFAULT_HISTORY_CAP,
    ) -> "Monitor":
        """Create a Monitor from a persisted record.

        Args:
            data: Persisted record (camelCase keys).
            interval_ms: Interval already normalized by the caller.
            history_cap: Ledger capacity; only the newest points are kept.

        Returns:
            Monitor instance.
        """
        raw_history = data.get("history")
        points = [
            HistoryPoint.from_dict(p)
            for p in (raw_history if isinstance(raw_history, list) else [])
            if isinstance(p, dict)
        ]
        return cls(
            id=str(data.get("id") or new_monitor_id()),
            url=str(data["url"]),
            name=data.get("name") or None,
            interval_ms=interval_ms,
            enabled=data.get("enabled") is not False,
            last_status=data.get("lastStatus"),
            last_latency=data.get("lastLatency"),
            last_checked=data.get("lastChecked"),
            last_error=data.get("lastError"),
            consecutive_failures=int(data.get("consecutiveFailures") or 0),
            retry_count=int(data.get("retryCount") or 0),
            history=HistoryLedger(points[-history_cap:], cap=history_cap),
        )


@dataclass(frozen=True)
class AlertEvent:
    """An up/down transition of one monitor.

    Produced only when the up/down classification of a terminal result
    differs from the previous one.
    """

    monitor_id: str
    monitor_name: str | None
    url: str
    timestamp: int
    previous_up: bool
    now_up: bool
    status: int
    latency_ms: int
    error: str | None = None
    forced: bool = False

    @property
    def kind(self) -> str:
        return "recovered" if self.now_up else "down"

    @property
    def title(self) -> str:
        label = self.monitor_name or self.url
        if self.now_up:
            return f"{label} is back UP"
        return f"{label} is DOWN"

    @property
    def message(self) -> str:
        if self.now_up:
            return f"{self.url} responded {self.status} in {self.latency_ms} ms"
        if self.status == 0:
            return f"{self.url} could not be reached: {self.error or 'unknown error'}"
        return f"{self.url} responded {self.status}" + (
            f" ({self.error})" if self.error else ""
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "monitor_id": self.monitor_id,
            "monitor_name": self.monitor_name,
            "url": self.url,
            "timestamp": self.timestamp,
            "previous_up": self.previous_up,
            "now_up": self.now_up,
            "kind": self.kind,
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
            "forced": self.forced,
        }


class MonitorPatch(BaseModel):
    """Explicit set of editable monitor fields.

    Fields left out of the request are not touched. ``name`` set to null
    or a blank string clears the display name.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200, description="Display name")
    url: str | None = Field(default=None, description="Target URL")
    interval_ms: int | None = Field(
        default=None, description="Check interval in milliseconds (clamped up to the floor)"
    )
    enabled: bool | None = Field(default=None, description="Enable or disable checks")

    def provided(self, name: str) -> bool:
        """Whether the field was present in the request."""
        return name in self.model_fields_set
