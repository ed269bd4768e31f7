"""
Liveness endpoint.
"""

from fastapi import APIRouter, Depends

from pulsewatch.api.dependencies import get_monitor_service
from pulsewatch.api.models import HealthResponse
from pulsewatch.monitors.service import MonitorService

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
)
async def health_check(
    service: MonitorService = Depends(get_monitor_service),
) -> HealthResponse:
    return HealthResponse(
        ok=True,
        status="running" if service.running else "stopped",
        monitors=len(service.registry),
        scheduled=len(service.scheduler.scheduled_ids),
        in_flight=len(service.scheduler.in_flight_ids),
        store=service.store.name,
    )
