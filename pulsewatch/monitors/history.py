"""Check-result records and the bounded per-monitor history ledger.

A ``HistoryPoint`` is the immutable outcome of one terminal probe attempt.
Points serialize with the short keys used by persisted monitor records
(``t``, ``up``, ``status``, ``ms``, ``attempt``, ``forced``, ``error``).
"""

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

DEFAULT_HISTORY_CAP = 200

# Status recorded when no HTTP response was received at all
TRANSPORT_FAILURE_STATUS = 0


def is_up(status: int | None) -> bool:
    """An HTTP status counts as up iff it is in [200, 400)."""
    return status is not None and 200 <= status < 400


@dataclass(frozen=True)
class HistoryPoint:
    """Result of one check.

    Attributes:
        t: Epoch milliseconds when the terminal attempt completed.
        up: Whether the status is in [200, 400).
        status: HTTP status code, or 0 for a transport failure.
        ms: Latency of the terminal attempt in milliseconds.
        attempt: 1-based attempt number within the retry sequence.
        forced: Whether the check ran outside the regular interval.
        error: Error text for transport failures and down responses.
    """

    t: int
    up: bool
    status: int
    ms: int
    attempt: int = 1
    forced: bool = False
    error: str | None = None

    @property
    def retried(self) -> bool:
        return self.attempt > 1

    @property
    def transport_failure(self) -> bool:
        return self.status == TRANSPORT_FAILURE_STATUS

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "t": self.t,
            "up": self.up,
            "status": self.status,
            "ms": self.ms,
            "attempt": self.attempt,
            "forced": self.forced,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryPoint":
        """Create a point from a persisted dictionary.

        Older records only carry ``t``/``up``/``status``/``ms``; the
        remaining fields fall back to their defaults.
        """
        status = int(data.get("status") or 0)
        return cls(
            t=int(data.get("t") or 0),
            up=bool(data.get("up", is_up(status))),
            status=status,
            ms=int(data.get("ms") or 0),
            attempt=int(data.get("attempt") or 1),
            forced=bool(data.get("forced", False)),
            error=data.get("error"),
        )


class HistoryLedger:
    """FIFO ring buffer of ``HistoryPoint`` records.

    Appending past the cap evicts the oldest point, so ``len(ledger)``
    never exceeds ``cap``. Points are kept in append order.
    """

    def __init__(
        self,
        points: Iterable[HistoryPoint] = (),
        cap: int = DEFAULT_HISTORY_CAP,
    ) -> None:
        if cap < 1:
            raise ValueError(f"History cap must be positive, got {cap}")
        self._points: deque[HistoryPoint] = deque(points, maxlen=cap)

    @property
    def cap(self) -> int:
        return self._points.maxlen or DEFAULT_HISTORY_CAP

    def append(self, point: HistoryPoint) -> None:
        self._points.append(point)

    def clear(self) -> None:
        self._points.clear()

    def tail(self, limit: int) -> list[HistoryPoint]:
        """Newest ``limit`` points, oldest first."""
        if limit <= 0:
            return []
        return list(self._points)[-limit:]

    @property
    def last(self) -> HistoryPoint | None:
        return self._points[-1] if self._points else None

    def to_list(self) -> list[dict[str, Any]]:
        return [p.to_dict() for p in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[HistoryPoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return f"HistoryLedger(len={len(self._points)}, cap={self.cap})"
