"""Alert delivery for monitor up/down transitions.

Components:
- AlertSink: ABC for delivery targets
- LogSink / CallbackSink: Local sinks
- HttpSink / WebhookSink / SlackSink: JSON POST sinks
- CircuitBreaker: Resilience wrapper for network sinks
- AlertDispatcher: Ordered, failure-isolated fan-out
- NotificationConfig: Pydantic settings for sink configuration
"""

from pulsewatch.alerts.config import NotificationConfig
from pulsewatch.alerts.dispatcher import AlertDispatcher, build_dispatcher
from pulsewatch.alerts.sinks import (
    AlertSink,
    CallbackSink,
    CircuitBreaker,
    CircuitState,
    HttpSink,
    LogSink,
    SlackSink,
    WebhookSink,
)

__all__ = [
    "AlertDispatcher",
    "AlertSink",
    "CallbackSink",
    "CircuitBreaker",
    "CircuitState",
    "HttpSink",
    "LogSink",
    "NotificationConfig",
    "SlackSink",
    "WebhookSink",
    "build_dispatcher",
]
