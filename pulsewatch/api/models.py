"""
Pydantic models for API request/response validation.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error category (validation, not_found, conflict, internal)",
    )


class OkResponse(BaseModel):
    ok: bool = True
    message: str | None = None


# ── Monitor requests ─────────────────────────────────────────


class MonitorCreate(BaseModel):
    """Request body for creating a monitor."""

    url: str | None = Field(
        default=None,
        description="Target URL; http:// is prepended when no scheme is given",
        examples=["https://example.com/health"],
    )
    name: str | None = Field(
        default=None,
        max_length=200,
        description="Optional display name",
    )
    interval_ms: int | None = Field(
        default=None,
        description="Check interval in milliseconds (default 5000, floor 2000)",
    )


class MonitorBulkCreate(BaseModel):
    """Request body for creating several monitors at once."""

    urls: list[Any] = Field(
        default_factory=list,
        description="Target URLs; non-string or blank entries are skipped",
    )
    names: list[str | None] | None = Field(
        default=None,
        description="Display names paired with urls by position",
    )
    interval_ms: int | None = Field(
        default=None,
        description="Check interval applied to every created monitor",
    )


# ── Monitor responses ────────────────────────────────────────


class HistoryPointItem(BaseModel):
    """One terminal check result."""

    t: int = Field(..., description="Epoch milliseconds")
    up: bool
    status: int = Field(..., description="HTTP status, 0 for transport failure")
    ms: int = Field(..., description="Latency in milliseconds")
    attempt: int = Field(default=1, description="Attempt number that produced the result")
    forced: bool = False
    error: str | None = None


class MonitorSummary(BaseModel):
    """Monitor state with derived uptime and health."""

    id: str
    name: str | None = None
    url: str
    interval_ms: int
    enabled: bool
    last_status: int | None = None
    last_latency: int | None = None
    last_checked: int | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    retry_count: int = 0
    uptime_pct: float = Field(..., description="Share of up points in the retained history")
    health: Literal["unknown", "healthy", "unhealthy", "critical"]


class MonitorDetail(MonitorSummary):
    history: list[HistoryPointItem] = Field(
        default_factory=list,
        description="Newest history points, oldest first",
    )


class CheckDownResponse(BaseModel):
    checked: list[str] = Field(
        default_factory=list,
        description="Ids of the monitors that were down and got re-checked",
    )
    count: int = 0


# ── Stats / events ───────────────────────────────────────────


class StatsResponse(BaseModel):
    total: int
    up: int
    down: int
    enabled: int
    disabled: int
    critical: int
    overall_uptime: float = Field(..., description="Uptime over all retained points")


class EventItem(HistoryPointItem):
    """Noteworthy history point tagged with its monitor."""

    monitor_id: str
    monitor_name: str | None = None
    url: str


# ── Health ───────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Liveness response."""

    ok: bool = True
    status: str = Field(
        ...,
        description="Engine status: running or stopped",
    )
    monitors: int = 0
    scheduled: int = 0
    in_flight: int = 0
    store: str | None = None
