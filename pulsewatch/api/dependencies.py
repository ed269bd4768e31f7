"""
Dependency injection for FastAPI endpoints.
"""

from fastapi import HTTPException, status

from pulsewatch.alerts.config import NotificationConfig
from pulsewatch.alerts.dispatcher import build_dispatcher
from pulsewatch.config.settings import get_settings
from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.service import MonitorService
from pulsewatch.storage.fallback import build_store

# Global service instance (set by the app lifespan)
_monitor_service: MonitorService | None = None


def build_monitor_service() -> MonitorService:
    """Create a MonitorService from environment configuration."""
    settings = get_settings()
    return MonitorService(
        store=build_store(settings),
        config=MonitorConfig(),
        dispatcher=build_dispatcher(NotificationConfig()),
    )


def set_monitor_service(service: MonitorService | None) -> None:
    global _monitor_service
    _monitor_service = service


def get_monitor_service() -> MonitorService:
    """Get the running monitor service."""
    if _monitor_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Monitor service is not running",
        )
    return _monitor_service
