"""Monitor engine configuration.

Controls the interval floor, history cap, retry budget, probe timeouts and
recovery sweep cadence. All settings can be overridden via ``MONITOR_*``
environment variables (e.g. ``MONITOR_SWEEP_INTERVAL_SECONDS=10``).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonitorConfig(BaseSettings):
    """Configuration for the scheduling and health-check engine."""

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Intervals ────────────────────────────────────────────
    min_interval_ms: int = Field(
        default=2000,
        ge=1,
        description="Interval floor; shorter intervals are clamped up to this",
    )
    default_interval_ms: int = Field(
        default=5000,
        ge=1,
        description="Interval used when none is given",
    )

    # ── History ──────────────────────────────────────────────
    history_cap: int = Field(
        default=200,
        ge=1,
        description="Maximum history points kept per monitor (oldest evicted)",
    )
    detail_history_limit: int = Field(
        default=100,
        ge=1,
        description="Default number of points returned by the detail view",
    )
    events_limit: int = Field(
        default=50,
        ge=1,
        description="Default number of entries returned by the events view",
    )

    # ── Probing ──────────────────────────────────────────────
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per probe before the result is final",
    )
    retry_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Fixed wait between attempts",
    )
    min_timeout_ms: int = Field(
        default=2000,
        ge=1,
        description="Lower bound of the per-attempt timeout",
    )
    timeout_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Per-attempt timeout as a fraction of the check interval",
    )
    user_agent: str = Field(
        default="pulsewatch/0.1.0",
        description="User-Agent header sent with every probe",
    )

    # ── Health classification ────────────────────────────────
    critical_failure_threshold: int = Field(
        default=2,
        ge=0,
        description="Consecutive failures above which a monitor is critical",
    )

    # ── Recovery sweep / shutdown ────────────────────────────
    sweep_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Cadence of the forced re-check of down monitors",
    )
    shutdown_grace_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="How long shutdown waits for in-flight checks",
    )

    def clamp_interval(self, interval_ms: int | None) -> int:
        """Apply the default and the floor to a requested interval."""
        if interval_ms is None:
            return self.default_interval_ms
        return max(int(interval_ms), self.min_interval_ms)

    def timeout_for(self, interval_ms: int) -> float:
        """Per-attempt timeout in seconds, kept under the check cadence."""
        timeout_ms = max(self.min_timeout_ms, int(interval_ms * self.timeout_ratio))
        return timeout_ms / 1000
