"""Aggregate statistics, recent events and manual persistence."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from pulsewatch.api.dependencies import get_monitor_service
from pulsewatch.api.models import ErrorResponse, EventItem, OkResponse, StatsResponse
from pulsewatch.monitors.service import MonitorService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api")


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Aggregate statistics",
)
async def get_stats(
    service: MonitorService = Depends(get_monitor_service),
) -> dict:
    return service.stats()


@router.get(
    "/events",
    response_model=list[EventItem],
    summary="Recent events",
    description="Forced, retried or failed checks across all monitors, newest first.",
)
async def get_events(
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum events to return"),
    service: MonitorService = Depends(get_monitor_service),
) -> list[dict]:
    return service.recent_events(limit)


@router.post(
    "/sync",
    response_model=OkResponse,
    responses={502: {"model": ErrorResponse, "description": "Store write failed"}},
    summary="Persist now",
    description="Writes every monitor to the configured store and waits for the result.",
)
async def sync_store(
    service: MonitorService = Depends(get_monitor_service),
) -> OkResponse:
    ok = await service.sync()
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to write monitors to {service.store.name}",
        )
    return OkResponse(ok=True, message=f"Synced to {service.store.name}")
