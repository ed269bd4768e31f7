"""Alert delivery configuration.

Controls which sinks receive transition events and how network sinks are
protected. All settings can be overridden via ``NOTIFICATIONS_*``
environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationConfig(BaseSettings):
    """Configuration for alert sinks."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        case_sensitive=False,
        extra="ignore",
    )

    webhook_url: str | None = Field(
        default=None,
        description="Endpoint receiving a JSON POST per transition",
    )
    webhook_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with webhook posts (JSON object)",
    )
    slack_webhook_url: str | None = Field(
        default=None,
        description="Slack incoming webhook URL",
    )
    slack_channel: str | None = Field(
        default=None,
        description="Optional Slack channel override",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=60.0,
        description="Per-send timeout for network sinks",
    )
    circuit_breaker_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before a sink's circuit opens",
    )
    circuit_breaker_recovery_seconds: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds before an open circuit lets one probe send through",
    )
